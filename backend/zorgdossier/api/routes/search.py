"""Dossier Search — ranked keyword search over one client's records.

Invariants:
    - Unknown client returns 404
    - Results always reflect the current dossier (no persistent index)
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from zorgdossier.core.dossier_search import SearchFilters, search_dossier
from zorgdossier.infrastructure.database import get_db
from zorgdossier.schemas.search import SearchRequest
from zorgdossier.services.dossier_loader import load_dossier

router = APIRouter(prefix="/api/search", tags=["search"])


@router.post("")
async def search(body: SearchRequest, db: AsyncSession = Depends(get_db)):
    dossier = await load_dossier(db, body.client_id)
    filters = SearchFilters(**body.filters.model_dump()) if body.filters else None
    return {"hits": search_dossier(dossier, body.query, body.k, filters)}
