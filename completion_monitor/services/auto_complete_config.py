"""
Auto-complete configuration
Resolves monitor tunables from the active PricingConfig, field by field
"""

import logging

from pydantic import ValidationError
from sqlalchemy.orm import Session

from ..models import PricingConfig
from ..schemas import AutoCompleteConfig

logger = logging.getLogger(__name__)


def get_active_pricing_config(db: Session):
    """Get the newest active PricingConfig row, if any"""
    return (
        db.query(PricingConfig)
        .filter(PricingConfig.is_active.is_(True))
        .order_by(PricingConfig.id.desc())
        .first()
    )


def get_auto_complete_config(db: Session) -> AutoCompleteConfig:
    """
    Build the auto-complete config for one monitor run.

    Each field falls back to its default on its own, so a row that only sets
    the hours still gets the default reminder intervals and approval window.
    A failed read never aborts the run; it yields the full defaults.
    """
    try:
        config = get_active_pricing_config(db)
    except Exception as e:
        logger.warning(f"⚠️ Could not load PricingConfig, using auto-complete defaults: {e}")
        db.rollback()
        return AutoCompleteConfig()

    if not config:
        logger.debug("ℹ️ No active PricingConfig, using auto-complete defaults")
        return AutoCompleteConfig()

    overrides = {}
    if config.auto_complete_hours_after_end is not None:
        overrides["hours_after_end"] = config.auto_complete_hours_after_end
    if config.auto_complete_reminder_intervals:
        overrides["reminder_intervals"] = config.auto_complete_reminder_intervals
    if config.completion_auto_approval_hours is not None:
        overrides["auto_approval_hours"] = config.completion_auto_approval_hours

    valid = {}
    for field, value in overrides.items():
        try:
            AutoCompleteConfig(**{field: value})
            valid[field] = value
        except ValidationError as e:
            logger.warning(
                f"⚠️ Invalid {field} in PricingConfig {config.id}, using default: {e.errors()[0]['msg']}"
            )

    return AutoCompleteConfig(**valid)
