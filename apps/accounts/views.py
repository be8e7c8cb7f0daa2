from rest_framework import status, serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from apps.members.serializers import MemberSerializer
from apps.members.services import (
    authenticate_member,
    create_member,
    DuplicateEmailError,
    InvalidCredentialsError as MemberCredentialsError,
)
from .identity import end_session, start_session
from .models import UserType
from .serializers import (
    MemberLoginSerializer,
    MemberRegistrationSerializer,
    StaffLoginSerializer,
    StaffUserSerializer,
)
from .services import authenticate_staff, InactiveAccountError, InvalidCredentialsError


# Response serializers for API documentation
class MemberAuthResponseSerializer(serializers.Serializer):
    message = serializers.CharField()
    member = MemberSerializer()


class StaffAuthResponseSerializer(serializers.Serializer):
    message = serializers.CharField()
    user = StaffUserSerializer()


class MeResponseSerializer(serializers.Serializer):
    user_type = serializers.ChoiceField(choices=UserType.choices)
    user = serializers.DictField()


class MessageResponseSerializer(serializers.Serializer):
    message = serializers.CharField()


class ErrorResponseSerializer(serializers.Serializer):
    error = serializers.CharField()


def _principal_data(identity):
    if identity.is_member:
        return MemberSerializer(identity.principal).data
    return StaffUserSerializer(identity.principal).data


@extend_schema(
    request=MemberRegistrationSerializer,
    responses={
        201: MemberAuthResponseSerializer,
        400: ErrorResponseSerializer,
        409: ErrorResponseSerializer,
    },
    description="Register a new member account and start a member session.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def member_register(request):
    """Register a new member account."""
    serializer = MemberRegistrationSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        member = create_member(**serializer.validated_data)
    except DuplicateEmailError as e:
        return Response(
            {'error': str(e)},
            status=status.HTTP_409_CONFLICT
        )

    start_session(request, user_type=UserType.MEMBER, actor_id=member.pk)

    return Response({
        'message': 'Registration successful',
        'member': MemberSerializer(member).data,
    }, status=status.HTTP_201_CREATED)


@extend_schema(
    request=MemberLoginSerializer,
    responses={
        200: MemberAuthResponseSerializer,
        400: ErrorResponseSerializer,
        401: ErrorResponseSerializer,
    },
    description="Authenticate a member with email and password.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def member_login(request):
    """Login a member with email and password."""
    serializer = MemberLoginSerializer(data=request.data)

    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        member = authenticate_member(**serializer.validated_data)
    except MemberCredentialsError as e:
        return Response({'error': str(e)}, status=status.HTTP_401_UNAUTHORIZED)

    start_session(request, user_type=UserType.MEMBER, actor_id=member.pk)

    return Response({
        'message': 'Login successful',
        'member': MemberSerializer(member).data,
    })


@extend_schema(
    request=StaffLoginSerializer,
    responses={
        200: StaffAuthResponseSerializer,
        400: ErrorResponseSerializer,
        401: ErrorResponseSerializer,
        403: ErrorResponseSerializer,
    },
    description="Authenticate a staff account (owner, admin, repair staff).",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def admin_login(request):
    """Login a staff user with username and password."""
    serializer = StaffLoginSerializer(data=request.data)

    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        user = authenticate_staff(**serializer.validated_data)
    except InvalidCredentialsError as e:
        return Response({'error': str(e)}, status=status.HTTP_401_UNAUTHORIZED)
    except InactiveAccountError as e:
        return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

    start_session(request, user_type=user.role, actor_id=user.pk)

    return Response({
        'message': 'Login successful',
        'user': StaffUserSerializer(user).data,
    })


@extend_schema(
    request=None,
    responses={200: MessageResponseSerializer},
    description="End the current session (member or staff).",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def logout(request):
    """Flush the session."""
    end_session(request)
    return Response({
        'message': 'Logout successful'
    })


@extend_schema(
    responses={200: MemberSerializer, 401: ErrorResponseSerializer},
    description="Get the signed-in member's profile.",
    tags=['auth'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def member_me(request):
    """Current member profile."""
    if not request.user.is_member:
        return Response({'error': 'Not signed in as a member'}, status=status.HTTP_401_UNAUTHORIZED)
    return Response(MemberSerializer(request.user.principal).data)


@extend_schema(
    responses={200: StaffUserSerializer, 401: ErrorResponseSerializer},
    description="Get the signed-in staff user's profile.",
    tags=['auth'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def admin_me(request):
    """Current staff profile."""
    if not request.user.is_staff:
        return Response({'error': 'Not signed in as staff'}, status=status.HTTP_401_UNAUTHORIZED)
    return Response(StaffUserSerializer(request.user.principal).data)


@extend_schema(
    responses={200: MeResponseSerializer, 401: ErrorResponseSerializer},
    description="Resolve the current session into its user type and profile.",
    tags=['auth'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def get_current_identity(request):
    """Current identity of either kind."""
    return Response({
        'user_type': request.user.user_type,
        'user': _principal_data(request.user),
    })
