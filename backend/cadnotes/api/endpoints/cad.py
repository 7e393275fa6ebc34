from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Query

from cadnotes.api.schemas.cad import ElementRef
from cadnotes.dependencies import get_onshape_client, require_onshape_token

if TYPE_CHECKING:
    from cadnotes.core.models.oauth import OAuthToken
    from cadnotes.core.services.onshape_service import OnshapeApiClient

router = APIRouter(
    responses={
        302: {"description": "Redirect to /oauthStart when Onshape is not connected"},
        502: {"description": "Onshape API unreachable"},
    }
)


def element_ref(
    document_id: str = Query(..., alias="documentId", min_length=1),
    workspace_id: str = Query(..., alias="workspaceId", min_length=1),
    element_id: str = Query(..., alias="elementId", min_length=1),
) -> ElementRef:
    return ElementRef(document_id=document_id, workspace_id=workspace_id, element_id=element_id)


@router.get("/api/assemblydata")
async def assembly_data(
    ref: ElementRef = Depends(element_ref),
    token: OAuthToken = Depends(require_onshape_token),
    client: OnshapeApiClient = Depends(get_onshape_client),
):
    """Assembly definition (instances, parts, occurrences)."""
    return await client.get_assembly_definition(
        token.access_token, ref.document_id, ref.workspace_id, ref.element_id
    )


@router.get("/api/gltf-model")
async def gltf_model(
    ref: ElementRef = Depends(element_ref),
    token: OAuthToken = Depends(require_onshape_token),
    client: OnshapeApiClient = Depends(get_onshape_client),
):
    return await client.export_gltf(token.access_token, ref.document_id, ref.workspace_id, ref.element_id)


@router.get("/api/exploded-config")
async def exploded_config(
    ref: ElementRef = Depends(element_ref),
    token: OAuthToken = Depends(require_onshape_token),
    client: OnshapeApiClient = Depends(get_onshape_client),
):
    return await client.get_exploded_views(token.access_token, ref.document_id, ref.workspace_id, ref.element_id)


@router.get("/api/mates")
async def mates(
    ref: ElementRef = Depends(element_ref),
    token: OAuthToken = Depends(require_onshape_token),
    client: OnshapeApiClient = Depends(get_onshape_client),
):
    return await client.get_mates(token.access_token, ref.document_id, ref.workspace_id, ref.element_id)


@router.get("/listDocuments")
async def list_documents(
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    token: OAuthToken = Depends(require_onshape_token),
    client: OnshapeApiClient = Depends(get_onshape_client),
):
    """Onshape documents visible to the connected account."""
    return await client.list_documents(token.access_token, limit=limit, offset=offset)
