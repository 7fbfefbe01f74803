from django.db import models


# --- Models ---

class StorageEntry(models.Model):
    """
    One key of the local storage mirror. value holds the JSON-serialized
    collection exactly as it would sit in on-device storage.
    """
    key = models.CharField(max_length=128, unique=True)
    value = models.TextField(blank=True, default='')
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'storefront_storage_entry'
        ordering = ['key']

    def __str__(self):
        return self.key

    @classmethod
    def get_item(cls, key):
        """Return the stored string for key, or None when absent."""
        row = cls.objects.filter(key=key).values_list('value', flat=True).first()
        return row

    @classmethod
    def set_item(cls, key, value):
        cls.objects.update_or_create(key=key, defaults={'value': value})

    @classmethod
    def remove_item(cls, key):
        cls.objects.filter(key=key).delete()
