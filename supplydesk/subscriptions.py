"""
Live result-set subscriptions on top of Django model signals.

subscribe() registers a callback that receives the full list of rows
matching the given filters every time a row of the model is saved or
deleted, or when notify_changed() reports a bulk update. Delivery
happens after the surrounding transaction commits, so a subscriber never
sees half of an atomic batch.
"""
import itertools
import logging

from django.db import transaction
from django.db.models.signals import post_delete, post_save
from django.dispatch import Signal

logger = logging.getLogger(__name__)

_uid_counter = itertools.count(1)

# Sent for writes that bypass save()/delete(), such as QuerySet.update().
rows_changed = Signal()


def snapshot(model, filters=None, order_by=None):
    qs = model.objects.all()
    if filters:
        qs = qs.filter(**filters)
    if order_by:
        qs = qs.order_by(*order_by)
    return list(qs)


def subscribe(model, callback, filters=None, order_by=None):
    """
    Call `callback(rows)` with the current matching rows on every change.

    Returns an unsubscribe() handle. Calling it more than once is harmless.
    """
    dispatch_uid = f"subscription-{model._meta.label_lower}-{next(_uid_counter)}"

    def _deliver():
        callback(snapshot(model, filters, order_by))

    def _on_change(sender, **kwargs):
        transaction.on_commit(_deliver)

    post_save.connect(_on_change, sender=model, weak=False, dispatch_uid=dispatch_uid)
    post_delete.connect(_on_change, sender=model, weak=False, dispatch_uid=dispatch_uid)
    rows_changed.connect(_on_change, sender=model, weak=False, dispatch_uid=dispatch_uid)
    logger.debug("Subscribed %s to %s", dispatch_uid, model._meta.label)

    def unsubscribe():
        post_save.disconnect(sender=model, dispatch_uid=dispatch_uid)
        post_delete.disconnect(sender=model, dispatch_uid=dispatch_uid)
        rows_changed.disconnect(sender=model, dispatch_uid=dispatch_uid)

    return unsubscribe


def notify_changed(model):
    """Tell subscribers of `model` that rows changed outside save()/delete()."""
    rows_changed.send(sender=model)
