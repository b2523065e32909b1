# reservation/admin.py

from django.contrib import admin
from .models import Reservation


@admin.register(Reservation)
class ReservationAdmin(admin.ModelAdmin):
    """
    Admin configuration for Reservation model.
    Reservations are booked only through the API, so the admin is read-only.
    """
    list_display = (
        'id',
        'table_number',
        'client_name',
        'date',
        'slot_time_start',
        'slot_time_end',
        'created_at',
    )
    list_filter = ('date', 'table_number')
    search_fields = ('client_name', 'phone_number')
    ordering = ('-date', '-slot_time_start')
    date_hierarchy = 'date'

    fieldsets = (
        ('Client', {
            'fields': ('client_name', 'phone_number')
        }),
        ('Reservation Details', {
            'fields': ('table_number', 'date', 'slot_time_start', 'slot_time_end')
        }),
        ('Timestamps', {
            'fields': ('created_at',),
            'classes': ('collapse',)
        }),
    )
    readonly_fields = (
        'client_name',
        'phone_number',
        'table_number',
        'date',
        'slot_time_start',
        'slot_time_end',
        'created_at',
    )

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
