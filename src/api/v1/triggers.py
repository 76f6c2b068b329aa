# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Cron endpoints for the notification triggers.

An external cron calls these with the shared secret in ``X-Cron-Secret``:
- POST /compliance
- POST /inactivity
- POST /profile
- POST /all
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from src.api.dependencies import get_trigger_engine, verify_cron_secret
from src.core.triggers import TriggerEngine, TriggerEngineError
from src.infrastructure.database.connection import DatabaseError
from src.models.notifications import TriggerCounts, TriggerRunResponse

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(verify_cron_secret)])


@router.post("/{name}", response_model=TriggerRunResponse)
async def run_trigger(
    name: str,
    engine: Annotated[TriggerEngine, Depends(get_trigger_engine)],
) -> TriggerRunResponse:
    """Run one trigger, or every trigger when ``name`` is ``all``.

    Raises:
        HTTPException: 404 for an unknown trigger, 503 when candidate
            selection fails.
    """
    if name == "all":
        summary = await engine.run_all_triggers()
        return TriggerRunResponse(
            trigger=name,
            results={key: TriggerCounts(**value) for key, value in summary.items()},
        )

    try:
        result = await engine.run_trigger(name)
    except TriggerEngineError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message) from e
    except DatabaseError as e:
        logger.error("Trigger %s failed: %s", name, str(e))
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Trigger {name} failed",
        ) from e

    logger.info("Trigger %s run via cron endpoint: %s", name, result)
    return TriggerRunResponse(trigger=name, results={name: TriggerCounts(**result)})
