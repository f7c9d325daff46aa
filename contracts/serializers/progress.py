from rest_framework import serializers


class ProgressReportSerializer(serializers.Serializer):

    id = serializers.CharField(read_only=True)
    author_id = serializers.CharField(read_only=True)
    kind = serializers.CharField(read_only=True)
    text = serializers.CharField(required=False, allow_blank=True, default='')
    external_url = serializers.URLField(required=False, allow_blank=True, default='', max_length=1024)
    media_url = serializers.CharField(required=False, allow_blank=True, default='', max_length=1024)
    created_at = serializers.DateTimeField(read_only=True)
