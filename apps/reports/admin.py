from django.contrib import admin

from .models import Report


@admin.register(Report)
class ReportAdmin(admin.ModelAdmin):
    list_display = ['title', 'status', 'reporter_type', 'reporter_id', 'assigned_to', 'created_at', 'resolved_at']
    list_filter = ['status', 'reporter_type', 'created_at']
    search_fields = ['title', 'description']
    ordering = ['-created_at']
    date_hierarchy = 'created_at'
    readonly_fields = ['reporter_id', 'reporter_type', 'created_at', 'updated_at', 'resolved_at']
