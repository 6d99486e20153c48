"""bmad2vibe: BMAD Method to Mistral Vibe converter."""

__version__ = "0.1.0"
__author__ = "bmad2vibe Contributors"
__description__ = "Convert BMAD Method agents, workflows and tasks to Mistral Vibe"

from .compiler import ArtifactBuilder
from .converter import Converter
from .models import ConversionConfig, SafetyPolicy, SafetyTier
from .report import ConversionReport
from .safety import SafetyClassifier
from .validator import ConsistencyValidator

__all__ = [
    "ArtifactBuilder",
    "ConsistencyValidator",
    "ConversionConfig",
    "ConversionReport",
    "Converter",
    "SafetyClassifier",
    "SafetyPolicy",
    "SafetyTier",
]
