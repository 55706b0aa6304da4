from common.choices import AppointmentType
from customer.models import Customer
from rest_framework import serializers

from .models import Appointment, Lead
from .services import appointment_urgency


class LeadSerializer(serializers.ModelSerializer):
    class Meta:
        model = Lead
        fields = ["id", "company_name", "contact_person", "email", "phone", "is_active"]
        read_only_fields = ["id"]


class AppointmentSerializer(serializers.ModelSerializer):
    activity_type_label = serializers.CharField(source="get_activity_type_display", read_only=True)
    customer_name = serializers.CharField(source="customer.company_name", read_only=True, default=None)
    lead_name = serializers.CharField(source="lead.company_name", read_only=True, default=None)
    created_by_name = serializers.CharField(source="created_by.display_name", read_only=True, default=None)
    urgency = serializers.SerializerMethodField()

    class Meta:
        model = Appointment
        fields = [
            "id",
            "activity_type",
            "activity_type_label",
            "subject",
            "description",
            "location",
            "follow_up_date",
            "customer",
            "customer_name",
            "lead",
            "lead_name",
            "is_completed",
            "completed_at",
            "urgency",
            "created_by_name",
            "created_at",
        ]
        read_only_fields = fields

    def get_urgency(self, obj) -> str:
        return appointment_urgency(obj, self.context.get("now"))


class AppointmentInputSerializer(serializers.Serializer):
    activity_type = serializers.ChoiceField(choices=AppointmentType.choices, default=AppointmentType.MEETING)
    subject = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    location = serializers.CharField(max_length=255, required=False, allow_blank=True)
    follow_up_date = serializers.DateTimeField()


class AppointmentCreateSerializer(AppointmentInputSerializer):
    customer = serializers.PrimaryKeyRelatedField(queryset=Customer.objects.all(), required=False, allow_null=True)
    lead = serializers.PrimaryKeyRelatedField(queryset=Lead.objects.all(), required=False, allow_null=True)
