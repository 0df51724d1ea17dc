"""
services/mlflow_service.py
--------------------------
MLflow experiment tracking for LLM calls.

Every completion (company scoring, segment generation) is logged as a run
inside the "strategy-forge" experiment:
  - params:  model, purpose, prompt length, customer_id
  - metrics: latency in milliseconds, response length
  - tags:    purpose, environment

Tracking is off while MLFLOW_TRACKING_URI is empty, and a tracking failure
never breaks the request that produced the call.

View the MLflow UI:
  mlflow ui --port 5001
"""

from typing import Optional

import mlflow

from forge.core.config import settings
from forge.core.logging import get_logger

logger = get_logger(__name__)

EXPERIMENT_NAME = "strategy-forge"


def tracking_enabled() -> bool:
    return bool(settings.MLFLOW_TRACKING_URI)


def setup_mlflow() -> None:
    """
    Called once at application startup.
    Creates the experiment if it doesn't exist.
    """
    if not tracking_enabled():
        logger.info("MLflow tracking disabled (MLFLOW_TRACKING_URI not set)")
        return

    try:
        mlflow.set_tracking_uri(settings.MLFLOW_TRACKING_URI)
        if mlflow.get_experiment_by_name(EXPERIMENT_NAME) is None:
            mlflow.create_experiment(EXPERIMENT_NAME)
            logger.info("MLflow experiment created", experiment=EXPERIMENT_NAME)
        mlflow.set_experiment(EXPERIMENT_NAME)
        logger.info("MLflow tracking initialised", uri=settings.MLFLOW_TRACKING_URI)
    except Exception as exc:
        logger.warning("MLflow setup failed (non-fatal)", error=str(exc))


def track_llm_call(
    purpose: str,
    model: str,
    prompt: str,
    response: str,
    latency_ms: float,
    customer_id: Optional[str] = None,
) -> Optional[str]:
    """
    Log a single LLM completion as an MLflow run.

    Args:
        purpose:     What the call was for ("company_scoring", "segment_generation").
        model:       Model name sent to the provider.
        prompt:      System + user prompt text.
        response:    Raw completion content.
        latency_ms:  Provider round-trip in milliseconds.
        customer_id: Tenant the call was made for, when known.

    Returns:
        The MLflow run_id, or None if tracking is disabled or failed.
    """
    if not tracking_enabled():
        return None

    try:
        mlflow.set_experiment(EXPERIMENT_NAME)

        with mlflow.start_run() as run:
            mlflow.log_params({
                "model":         model,
                "purpose":       purpose,
                "prompt_length": len(prompt),
                "customer_id":   customer_id or "unknown",
                "environment":   settings.APP_ENV,
            })
            mlflow.log_metrics({
                "latency_ms":      latency_ms,
                "response_length": float(len(response)),
                # ~4 chars per token
                "approx_tokens_in":  len(prompt) / 4,
                "approx_tokens_out": len(response) / 4,
            })
            mlflow.set_tags({
                "purpose": purpose,
                "source":  "api",
            })

            run_id = run.info.run_id
            logger.info("MLflow run logged", run_id=run_id, purpose=purpose)
            return run_id

    except Exception as exc:
        logger.warning("MLflow tracking failed (non-fatal)", error=str(exc))
        return None
