from django.contrib import admin

from .models import Member, MemberLevel, PointsTransaction, WalletTransaction


class ReadOnlyLedgerAdmin(admin.ModelAdmin):
    """Ledger rows are append-only; the admin may only look at them."""

    list_display = ['created_at', 'member', 'type', 'amount', 'balance', 'description', 'reference_id']
    list_filter = ['type', 'created_at']
    search_fields = ['member__name', 'member__email', 'reference_id', 'description']
    ordering = ['-created_at']
    list_select_related = ['member']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class PointsTransactionInline(admin.TabularInline):
    model = PointsTransaction
    fields = ['created_at', 'type', 'amount', 'balance', 'description']
    readonly_fields = fields
    extra = 0
    can_delete = False
    max_num = 0
    ordering = ['-sequence']


class WalletTransactionInline(admin.TabularInline):
    model = WalletTransaction
    fields = ['created_at', 'type', 'amount', 'balance', 'description']
    readonly_fields = fields
    extra = 0
    can_delete = False
    max_num = 0
    ordering = ['-sequence']


@admin.register(Member)
class MemberAdmin(admin.ModelAdmin):
    """
    Member admin.

    Balances and tier are shown read-only; change them through the ledger.
    """

    list_display = ['name', 'email', 'tier', 'points', 'lifetime_points', 'wallet_balance', 'created_at']
    list_filter = ['tier', 'created_at']
    search_fields = ['name', 'email', 'phone']
    ordering = ['-created_at']
    date_hierarchy = 'created_at'
    exclude = ['password']
    readonly_fields = ['tier', 'points', 'lifetime_points', 'wallet_balance', 'created_at', 'updated_at']
    inlines = [PointsTransactionInline, WalletTransactionInline]


@admin.register(MemberLevel)
class MemberLevelAdmin(admin.ModelAdmin):
    list_display = ['level', 'min_points', 'points_earn_rate', 'discount_percent']
    ordering = ['min_points']


admin.site.register(PointsTransaction, ReadOnlyLedgerAdmin)
admin.site.register(WalletTransaction, ReadOnlyLedgerAdmin)
