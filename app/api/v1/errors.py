"""Translation of settings domain errors into HTTP responses."""

from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import HTTPException, status

from app.core.settings_workflow import ConnectionTestError, SettingsValidationError
from app.services.billing_settings import SamePlanError, SubscriptionNotActiveError
from app.services.branding_settings import TenantNotFoundError, WhiteLabelDisabledError
from app.services.team_settings import DepartmentNotFoundError


@contextmanager
def settings_errors() -> Iterator[None]:
    """Re-raise known domain errors as ``HTTPException``.

    Anything else propagates to the global handler (500, logged).
    """
    try:
        yield
    except SettingsValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": "Settings validation failed", "errors": e.errors},
        ) from e
    except ConnectionTestError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": e.result.message, "data": e.result.data},
        ) from e
    except (TenantNotFoundError, DepartmentNotFoundError) as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except WhiteLabelDisabledError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e)) from e
    except (SamePlanError, SubscriptionNotActiveError) as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
