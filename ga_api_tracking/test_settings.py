SECRET_KEY = "ga-api-tracking-tests"

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "ga_api_tracking",
]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

ALLOWED_HOSTS = ["testserver", "localhost"]

MIDDLEWARE = [
    "ga_api_tracking.middleware.GoogleAnalyticsApiTrackingMiddleware",
]

GA_API_TRACKING = {
    "tracking_id": "UA-12345-1",
    "backend": "ga_api_tracking.backends.direct.DirectTrackingBackend",
    "timeout": 2,
}

USE_TZ = True
