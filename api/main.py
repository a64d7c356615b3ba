import os
import logging
import logging.config

import yaml
from fastapi import FastAPI, HTTPException

from api.schemas import AnnotateRequest, AnnotateResponse, SpanSchema
from annotator.errors import ServiceAuthError
from annotator.pipeline import annotate_text


def setup_logging():
    cfg_path = os.path.join("configs", "logging.yaml")
    if os.path.exists(cfg_path):
        try:
            with open(cfg_path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f)
            os.makedirs("logs", exist_ok=True)
            logging.config.dictConfig(config)
        except (OSError, ValueError, yaml.YAMLError) as e:
            print(f"[logging] Failed to load logging.yaml: {e}")
            logging.basicConfig(level=logging.INFO)
    else:
        logging.basicConfig(level=logging.INFO)


setup_logging()
logger = logging.getLogger("api")

app = FastAPI(
    title="Long-text Annotator",
    version="0.1.0",
    description="Concept annotation of long texts over a length-limited annotation service.",
)


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.post("/annotate", response_model=AnnotateResponse)
def annotate(req: AnnotateRequest) -> AnnotateResponse:
    logger.info("Received /annotate request (%d characters)", len(req.text))
    try:
        spans, report = annotate_text(
            text=req.text,
            config_path=req.config_path,
            max_fragment_length=req.max_fragment_length,
        )
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail=f"Config not found: {req.config_path}")
    except ServiceAuthError as e:
        logger.error("Annotation service refused the request: %s", e)
        raise HTTPException(status_code=502, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    if report.failed_chunks:
        logger.warning("Partial result: chunks %s failed", report.failed_chunks)

    span_schemas = [
        SpanSchema(
            start=s.start,
            length=s.length,
            end=s.end,
            concept_id=str(s.concept_id),
            surface=req.text[s.start:s.end],
        )
        for s in spans
    ]
    return AnnotateResponse(
        spans=span_schemas,
        chunks=report.chunks,
        failed_chunks=report.failed_chunks,
        dropped_unresolved=report.dropped_unresolved,
        dropped_out_of_range=report.dropped_out_of_range,
        elapsed_ms=report.elapsed_ms,
    )
