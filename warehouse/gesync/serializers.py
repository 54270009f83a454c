from rest_framework import serializers
from .sync import DEFAULT_ORPHAN_STATUS


class AsisSyncRunSerializer(serializers.Serializer):
    """Options for an ASIS sync run; batch_size falls back to GE_SYNC_BATCH_SIZE"""
    batch_size = serializers.IntegerField(min_value=1, required=False)
    mark_orphans = serializers.BooleanField(default=False)
    orphan_status = serializers.CharField(max_length=50, required=False, default=DEFAULT_ORPHAN_STATUS)
