from fastapi import APIRouter
from datetime import datetime, timezone
from packages.aip_core.config import AIPConfig

router = APIRouter()
config = AIPConfig.load()

@router.get("/health")
async def health_check():
    """
    Server Liveness Probe.
    Returns status, version, configured capabilities and current timestamp.
    """
    return {
        "status": "ok",
        "version": config.VERSION,
        "llm_provider": config.LLM_PROVIDER,
        "code_exec_provider": config.CODE_EXEC_PROVIDER,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
