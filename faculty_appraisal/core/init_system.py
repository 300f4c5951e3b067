import logging
from typing import Optional
from sqlalchemy.orm import Session
from faculty_appraisal.database import SessionLocal
from faculty_appraisal.models.grading_config import GradingConfig, GradingScope, DEFAULT_TEACHING_BANDS

logger = logging.getLogger(__name__)

def init_system_data(db: Optional[Session] = None):
    """
    Checks if the system needs initialization.
    If no GLOBAL grading config exists, creates the default one so that every
    cycle resolves to a usable configuration.
    """
    owns_session = db is None
    db = db or SessionLocal()
    try:
        global_count = db.query(GradingConfig).filter(GradingConfig.scope == GradingScope.GLOBAL).count()
        if global_count == 0:
            logger.info("Running startup initialization...")
            db.add(GradingConfig(
                scope=GradingScope.GLOBAL,
                research_weight=30,
                university_service_weight=20,
                community_service_weight=20,
                teaching_quality_weight=30,
                service_points_per_item=4,
                service_max_points=20,
                teaching_bands=list(DEFAULT_TEACHING_BANDS),
                research_map={},
            ))
            db.commit()
            logger.info("✓ Created default GLOBAL grading config")
        else:
            logger.info(f"System initialization check: {global_count} global grading config(s) found.")
    except Exception as e:
        db.rollback()
        logger.error(f"Error during system initialization check: {str(e)}", exc_info=True)
    finally:
        if owns_session:
            db.close()
