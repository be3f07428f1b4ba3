"""Default message templates stored on first start."""

from outage_notify.domain.entities import Channel, EventKind, Template

_OUTAGE_VARIABLES = [
    "title",
    "severity",
    "services",
    "description",
    "estimated_resolution",
    "status_page_url",
]
_RESOLVED_VARIABLES = ["title", "severity", "services", "description", "resolution_time"]
_USAGE_VARIABLES = ["threshold", "usage_percent", "cap_id"]

DEFAULT_TEMPLATES: tuple[Template, ...] = (
    Template(
        name="outage_started_email",
        event_kind=EventKind.OUTAGE_STARTED,
        channel=Channel.EMAIL,
        subject_template="Service Outage: {{title}}",
        body_template=(
            "Dear Customer,\n\n"
            "We are currently experiencing a {{severity}} outage affecting {{services}}.\n\n"
            "{{description}}\n\n"
            "Estimated resolution time: {{estimated_resolution}}\n\n"
            "We apologize for the inconvenience and are working to resolve this as quickly as possible.\n\n"
            "You can check the status page for real-time updates: {{status_page_url}}\n\n"
            "Best regards,\nNetwork Operations Team"
        ),
        variables=_OUTAGE_VARIABLES,
    ),
    Template(
        name="outage_started_sms",
        event_kind=EventKind.OUTAGE_STARTED,
        channel=Channel.SMS,
        body_template=(
            "{{severity}} outage affecting {{services}}. {{description}}. "
            "Status: {{status_page_url}}"
        ),
        variables=["severity", "services", "description", "status_page_url"],
    ),
    Template(
        name="outage_started_in_app",
        event_kind=EventKind.OUTAGE_STARTED,
        channel=Channel.IN_APP,
        subject_template="{{title}}",
        body_template="{{severity}} outage affecting {{services}}. Estimated resolution: {{estimated_resolution}}.",
        variables=["title", "severity", "services", "estimated_resolution"],
    ),
    Template(
        name="outage_started_push",
        event_kind=EventKind.OUTAGE_STARTED,
        channel=Channel.PUSH,
        subject_template="Outage: {{title}}",
        body_template="{{severity}} outage affecting {{services}}.",
        variables=["title", "severity", "services"],
    ),
    Template(
        name="outage_updated_email",
        event_kind=EventKind.OUTAGE_UPDATED,
        channel=Channel.EMAIL,
        subject_template="Outage Update: {{title}}",
        body_template=(
            "Dear Customer,\n\n"
            "There is an update on the {{severity}} outage affecting {{services}}.\n\n"
            "{{description}}\n\n"
            "Estimated resolution time: {{estimated_resolution}}\n\n"
            "Status page: {{status_page_url}}\n\n"
            "Best regards,\nNetwork Operations Team"
        ),
        variables=_OUTAGE_VARIABLES,
    ),
    Template(
        name="outage_updated_in_app",
        event_kind=EventKind.OUTAGE_UPDATED,
        channel=Channel.IN_APP,
        subject_template="Update: {{title}}",
        body_template="{{description}} Estimated resolution: {{estimated_resolution}}.",
        variables=["title", "description", "estimated_resolution"],
    ),
    Template(
        name="outage_resolved_email",
        event_kind=EventKind.OUTAGE_RESOLVED,
        channel=Channel.EMAIL,
        subject_template="Service Restored: {{title}}",
        body_template=(
            "Dear Customer,\n\n"
            "The {{severity}} outage affecting {{services}} has been resolved.\n\n"
            "{{description}}\n\n"
            "Service was restored at: {{resolution_time}}\n\n"
            "Thank you for your patience.\n\n"
            "Best regards,\nNetwork Operations Team"
        ),
        variables=_RESOLVED_VARIABLES,
    ),
    Template(
        name="outage_resolved_sms",
        event_kind=EventKind.OUTAGE_RESOLVED,
        channel=Channel.SMS,
        body_template="Service restored. The {{severity}} outage affecting {{services}} has been resolved.",
        variables=["severity", "services"],
    ),
    Template(
        name="outage_resolved_in_app",
        event_kind=EventKind.OUTAGE_RESOLVED,
        channel=Channel.IN_APP,
        subject_template="Resolved: {{title}}",
        body_template="Service affecting {{services}} was restored at {{resolution_time}}.",
        variables=["title", "services", "resolution_time"],
    ),
    Template(
        name="usage_threshold_email",
        event_kind=EventKind.USAGE_THRESHOLD_CROSSED,
        channel=Channel.EMAIL,
        subject_template="You have used {{threshold}}% of your data cap",
        body_template=(
            "Dear Customer,\n\n"
            "You have used {{usage_percent}}% of your monthly data cap.\n\n"
            "Best regards,\nNetwork Operations Team"
        ),
        variables=_USAGE_VARIABLES,
    ),
    Template(
        name="usage_threshold_sms",
        event_kind=EventKind.USAGE_THRESHOLD_CROSSED,
        channel=Channel.SMS,
        body_template="You have used {{usage_percent}}% of your monthly data cap.",
        variables=["usage_percent"],
    ),
    Template(
        name="usage_threshold_in_app",
        event_kind=EventKind.USAGE_THRESHOLD_CROSSED,
        channel=Channel.IN_APP,
        subject_template="{{threshold}}% of data cap used",
        body_template="You have used {{usage_percent}}% of your monthly data cap.",
        variables=_USAGE_VARIABLES,
    ),
    Template(
        name="usage_threshold_push",
        event_kind=EventKind.USAGE_THRESHOLD_CROSSED,
        channel=Channel.PUSH,
        subject_template="Data cap alert",
        body_template="You have used {{usage_percent}}% of your monthly data cap.",
        variables=["usage_percent"],
    ),
)


__all__ = ["DEFAULT_TEMPLATES"]
