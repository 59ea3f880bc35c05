from rest_framework import serializers


class ActivityFilterSerializer(serializers.Serializer):
    userId = serializers.IntegerField(required=False, source='user_id')
    action = serializers.CharField(required=False, allow_blank=True)
    entityType = serializers.CharField(required=False, allow_blank=True, source='entity_type')
    startDate = serializers.DateField(required=False, source='start_date')
    endDate = serializers.DateField(required=False, source='end_date')
    search = serializers.CharField(required=False, allow_blank=True)

    def to_filters(self) -> dict:
        """Validated data as keyword arguments for the activity service."""
        data = dict(self.validated_data)
        action = data.pop('action', '')
        data['actions'] = [a.strip() for a in action.split(',') if a.strip()]
        return data


class ActivityListQuerySerializer(ActivityFilterSerializer):
    page = serializers.IntegerField(required=False, min_value=1, default=1)
    pageSize = serializers.IntegerField(required=False, min_value=1, default=20,
                                        source='page_size')
