import datetime

import pytest
from django.core.management import call_command
from django.utils import timezone
from finance.models import IdempotencyKey


@pytest.mark.django_db
def test_cleanup_deletes_only_expired_keys():
    now = timezone.now()
    IdempotencyKey.objects.create(key="old", scope="anon", path="/p", method="POST", expires_at=now - datetime.timedelta(hours=1))
    fresh = IdempotencyKey.objects.create(
        key="new", scope="anon", path="/p", method="POST", expires_at=now + datetime.timedelta(hours=1)
    )

    call_command("cleanup_idempotency")

    assert list(IdempotencyKey.objects.values_list("id", flat=True)) == [fresh.id]
