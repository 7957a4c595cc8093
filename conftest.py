# Ensure tests import the package from this checkout first, so
# `import oryproxy.server` works without installing the project.
import os
import sys

SERVICE_ROOT = os.path.dirname(__file__)

if SERVICE_ROOT not in sys.path:
    sys.path.insert(0, SERVICE_ROOT)
