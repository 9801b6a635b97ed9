"""ferzcli testing -- framework setup, test runs and test templates."""

from ferzcli.testing.framework import FRAMEWORKS, SUPPORTED_FRAMEWORKS, TestingFramework
from ferzcli.testing.models import SetupResult, TestTemplates

__all__ = [
    "FRAMEWORKS",
    "SUPPORTED_FRAMEWORKS",
    "SetupResult",
    "TestTemplates",
    "TestingFramework",
]
