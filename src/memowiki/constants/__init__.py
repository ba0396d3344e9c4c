"""Configuration constants.

Re-exports all constants for convenient importing:
    from memowiki.constants import SUPPORTED_EXTENSIONS, DEFAULT_MAX_ATTEMPTS
"""

from memowiki.constants.generation import *  # noqa: F403
from memowiki.constants.llm import *  # noqa: F403
from memowiki.constants.search import *  # noqa: F403
from memowiki.constants.files import *  # noqa: F403
