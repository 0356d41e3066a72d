"""Outcome Classifier and the classify-leads batch workflow."""

from closer.classification.batch import (
    ClassifyLeadsInput,
    ClassifyLeadsOutput,
    ClassifyLeadsWorkflow,
)
from closer.classification.classifier import (
    OutcomeClassifier,
    apply_classification_to_lead,
    should_update_pipeline,
)
from closer.classification.models import Classification, ClassificationOutput, LeadUpdate

__all__ = [
    "Classification",
    "ClassificationOutput",
    "ClassifyLeadsInput",
    "ClassifyLeadsOutput",
    "ClassifyLeadsWorkflow",
    "LeadUpdate",
    "OutcomeClassifier",
    "apply_classification_to_lead",
    "should_update_pipeline",
]
