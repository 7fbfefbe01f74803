"""
Storage change broadcast. Every write to the local storage mirror (by a store,
the Django admin or a management command) fires storage_changed so that stores
in this process re-read the key at once instead of waiting for the next poll.
"""
from django.db.models.signals import post_delete, post_save
from django.dispatch import Signal, receiver

from .models import StorageEntry

# Sent with key=<storage key>.
storage_changed = Signal()


@receiver(post_save, sender=StorageEntry)
def on_storage_entry_save(sender, instance, **kwargs):
    storage_changed.send(sender=StorageEntry, key=instance.key)


@receiver(post_delete, sender=StorageEntry)
def on_storage_entry_delete(sender, instance, **kwargs):
    storage_changed.send(sender=StorageEntry, key=instance.key)
