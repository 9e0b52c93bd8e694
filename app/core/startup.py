"""
Startup validation and checks for the Recipe Cleaner API
"""

import logging
import sys
from typing import List, Tuple
from sqlalchemy import text
from app.core.config import settings
from app.core.database import Base, SessionLocal, engine

logger = logging.getLogger(__name__)

class StartupValidationError(Exception):
    """Raised when startup validation fails"""
    pass

def validate_database_url() -> Tuple[bool, List[str]]:
    """
    Validate the DATABASE_URL configuration

    Returns:
        Tuple of (is_valid, list_of_issues)
    """
    issues = []

    if not settings.DATABASE_URL:
        issues.append("DATABASE_URL is not set")
        return False, issues

    # Ensure SSL for production databases
    if "neon.tech" in settings.DATABASE_URL and "sslmode=require" not in settings.DATABASE_URL:
        issues.append("Neon Postgres requires SSL. Add '?sslmode=require' to DATABASE_URL")

    return len(issues) == 0, issues

def validate_ai_provider() -> Tuple[bool, List[str]]:
    """
    Validate AI provider configuration

    Returns:
        Tuple of (is_valid, list_of_issues)
    """
    warnings = []

    if not settings.ANTHROPIC_API_KEY:
        warnings.append("ANTHROPIC_API_KEY is not set; every slow-path extraction will fail")

    # Fast-path extractions still need the key for dual-unit enhancement, but degrade gracefully
    if warnings:
        logger.warning("AI provider configuration warnings: %s", "; ".join(warnings))

    return True, []

def validate_cors_origins() -> Tuple[bool, List[str]]:
    """
    Validate CORS origins configuration

    Returns:
        Tuple of (is_valid, list_of_issues)
    """
    issues = []
    warnings = []

    if not settings.ALLOWED_ORIGINS:
        issues.append("ALLOWED_ORIGINS is not set")
        return False, issues

    # Check for localhost-only in what might be production
    if all("localhost" in origin for origin in settings.ALLOWED_ORIGINS):
        warnings.append("All CORS origins are localhost. Update for production deployment.")

    # Note: warnings don't fail validation, just log them
    if warnings:
        logger.warning("CORS validation warnings: %s", "; ".join(warnings))

    return True, issues

def validate_governance_limits() -> Tuple[bool, List[str]]:
    """
    Validate spending ceilings and quotas

    Returns:
        Tuple of (is_valid, list_of_issues)
    """
    issues = []

    if settings.DAILY_SPENDING_LIMIT <= 0 or settings.MONTHLY_SPENDING_LIMIT <= 0:
        issues.append("Spending limits must be positive")
    if settings.DAILY_SPENDING_LIMIT > settings.MONTHLY_SPENDING_LIMIT:
        issues.append("DAILY_SPENDING_LIMIT exceeds MONTHLY_SPENDING_LIMIT")
    if min(settings.INITIAL_FREE_RECIPES, settings.FREE_RECIPES_PER_MONTH, settings.BASIC_RECIPES_PER_MONTH) < 0:
        issues.append("Recipe quotas cannot be negative")

    return len(issues) == 0, issues

def perform_startup_validation(strict: bool = False) -> bool:
    """
    Perform all startup validations

    Args:
        strict: If True, failed validations raise instead of returning False

    Returns:
        True if all validations pass, False otherwise

    Raises:
        StartupValidationError: If critical validations fail
    """
    logger.info("Starting application validation...")

    all_issues = []

    validations = [
        ("Database URL", validate_database_url),
        ("AI Provider", validate_ai_provider),
        ("CORS Origins", validate_cors_origins),
        ("Governance Limits", validate_governance_limits),
    ]

    for name, validator in validations:
        try:
            is_valid, issues = validator()
            if not is_valid:
                logger.error(f"{name} validation failed: {'; '.join(issues)}")
                all_issues.extend([f"{name}: {issue}" for issue in issues])
            else:
                logger.info(f"{name} validation passed")
        except Exception as e:
            error_msg = f"{name} validation error: {str(e)}"
            logger.error(error_msg)
            all_issues.append(error_msg)

    # Report results
    if all_issues:
        error_summary = "\n".join([f"  - {issue}" for issue in all_issues])
        logger.error(f"Startup validation failed with {len(all_issues)} issues:\n{error_summary}")

        if strict:
            raise StartupValidationError(f"Startup validation failed: {'; '.join(all_issues)}")
        return False

    logger.info("All startup validations passed successfully")
    return True

def check_required_environment():
    """Quick check for absolutely required environment variables"""
    required_vars = {
        'DATABASE_URL': settings.DATABASE_URL,
    }

    missing = [var for var, value in required_vars.items() if not value]

    if missing:
        error_msg = f"Missing required environment variables: {', '.join(missing)}"
        logger.error(error_msg)
        raise StartupValidationError(error_msg)

    logger.info("Required environment variables present")

def init_database():
    """
    Connect to the durable store, create tables and the spending ledger row.

    Quotas and the spending breaker cannot work without durable counters, so
    any failure here is fatal.
    """
    # Imported here so the ORM models register on Base before create_all
    from app import models  # noqa: F401
    from app.services.spending_service import SpendingService

    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        Base.metadata.create_all(bind=engine)

        db = SessionLocal()
        try:
            SpendingService.ensure_ledger(db)
        finally:
            db.close()
    except Exception as e:
        logger.critical(f"Database initialization failed: {e.__class__.__name__}: {e}")
        raise StartupValidationError(f"Database unavailable: {e}") from e

    logger.info("Database ready")

# FastAPI event handlers can use these functions
async def startup_event():
    """
    FastAPI startup event handler.

    Raising here aborts application startup, so the server never serves
    traffic without its governance store.
    """
    check_required_environment()
    perform_startup_validation(strict=False)
    init_database()
    logger.info("Application startup completed successfully")

if __name__ == "__main__":
    # Command line validation
    logging.basicConfig(level=logging.INFO)
    try:
        success = perform_startup_validation(strict=True)
        init_database()
        print("All startup validations passed")
        sys.exit(0 if success else 1)
    except StartupValidationError as e:
        print(f"Critical validation error: {str(e)}")
        sys.exit(1)
