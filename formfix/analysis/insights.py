from __future__ import annotations
import logging
from typing import Any, Iterable, List, Literal, Optional, Union

from pydantic import BaseModel, ValidationError as SchemaError

from ..config import DEFAULT_THRESHOLDS, FrictionThresholds
from ..errors import AnalysisError
from ..events import FrictionEvent
from .dropoff import (
    DropOffPoint,
    UserJourney,
    analyze_dropoff_frame,
    predicted_completion_frame,
    user_journeys_frame,
)
from .frame import events_frame
from .friction import FieldFrictionIssue, analyze_friction_frame
from .recommendations import Recommendation, recommend_frame

log = logging.getLogger(__name__)


class Insights(BaseModel):
    frictionScore: Literal["Low", "High"]
    problematicFields: List[FieldFrictionIssue]
    dropOffPoints: List[DropOffPoint]
    recommendations: List[Recommendation]
    predictedCompletionRate: Optional[int] = None
    userJourneyInsights: List[UserJourney]


def coerce_events(metrics: Iterable[Union[FrictionEvent, dict, Any]]) -> List[FrictionEvent]:
    out = []
    for m in metrics:
        out.append(m if isinstance(m, FrictionEvent) else FrictionEvent.model_validate(m))
    return out


def generate_insights(metrics, thresholds: FrictionThresholds = DEFAULT_THRESHOLDS) -> Insights:
    """
    Full insight report over one snapshot of metrics.

    Pure: the same sequence always yields the same report. Any failure is
    raised as AnalysisError and nothing partial is returned.
    """
    try:
        df = events_frame(coerce_events(metrics))
        friction = analyze_friction_frame(df, thresholds)
        dropoff = analyze_dropoff_frame(df)
        return Insights(
            frictionScore=friction.score,
            problematicFields=friction.problematicFields,
            dropOffPoints=dropoff.points,
            recommendations=recommend_frame(df, thresholds),
            predictedCompletionRate=predicted_completion_frame(df),
            userJourneyInsights=user_journeys_frame(df),
        )
    except (SchemaError, TypeError, ValueError, KeyError, ArithmeticError) as e:
        raise AnalysisError(f"insights generation failed: {e}") from e
