# Test-runner plumbing: backend.settings.base detects test mode via
# `"test" in sys.argv` (the `manage.py test` convention). Mirror that under
# pytest before the settings module is selected, so settings load in the
# same mode Django's own runner uses.
import os
import sys

if "test" not in sys.argv:
    sys.argv.append("test")

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "backend.settings.dev")

import django  # noqa: E402

django.setup()
