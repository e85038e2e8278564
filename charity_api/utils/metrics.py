from prometheus_client import Counter

UPLOAD_ATTEMPTS = Counter(
    "media_upload_attempts_total",
    "Upload attempts sent to the media host",
    ["resource_kind"],
)
UPLOAD_TIMEOUTS = Counter(
    "media_upload_timeouts_total",
    "Upload attempts that ran past the configured timeout",
    ["resource_kind"],
)
UPLOAD_REJECTIONS = Counter(
    "media_upload_rejections_total",
    "Uploads the media host refused",
    ["resource_kind"],
)
UPLOAD_SUCCESSES = Counter(
    "media_upload_successes_total",
    "Uploads that returned a public URL",
    ["resource_kind"],
)
NEWSLETTER_SENDS = Counter(
    "newsletter_campaigns_sent_total",
    "Newsletter campaigns handed to the delivery webhook",
    ["delivered"],
)
