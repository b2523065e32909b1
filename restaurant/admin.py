# restaurant/admin.py

from django.contrib import admin
from .models import Table


@admin.register(Table)
class TableAdmin(admin.ModelAdmin):
    """
    Admin configuration for Table model.
    Tables are immutable once registered, so existing rows are read-only.
    """
    list_display = ('id', 'number', 'places', 'is_vip', 'min_order')
    list_filter = ('is_vip',)
    search_fields = ('number',)
    ordering = ('number', 'id')

    fieldsets = (
        (None, {
            'fields': ('id', 'number', 'places')
        }),
        ('Attributes', {
            'fields': ('is_vip', 'min_order')
        }),
    )

    def get_readonly_fields(self, request, obj=None):
        if obj is not None:
            return ('id', 'number', 'places', 'is_vip', 'min_order')
        return ()

    def has_delete_permission(self, request, obj=None):
        return False
