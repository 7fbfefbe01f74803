from django.contrib import admin

from .models import StorageEntry


@admin.register(StorageEntry)
class StorageEntryAdmin(admin.ModelAdmin):
    list_display = ('key', 'updated_at')
    search_fields = ('key',)
    readonly_fields = ('updated_at',)
