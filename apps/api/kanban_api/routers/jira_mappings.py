from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from kanban_api.deps import get_db
from kanban_api.models import JiraUserMapping, is_uuid
from kanban_api.schemas import JiraUserMappingIn, JiraUserMappingOut

router = APIRouter(prefix="/integrations/jira/user-mappings", tags=["jira"])


def _email(value: str | None) -> str:
  return (value or "").strip().lower()


def _project_key(value: str | None) -> str | None:
  s = (value or "").strip().upper()
  return s or None


def _mapping_out(m: JiraUserMapping) -> JiraUserMappingOut:
  return JiraUserMappingOut(
    id=m.id,
    userEmail=m.user_email,
    jiraAssigneeName=m.jira_assignee_name,
    jiraReporterName=m.jira_reporter_name,
    jiraProjectKey=m.jira_project_key,
    integrationUserEmail=m.integration_user_email,
    createdAt=m.created_at,
    updatedAt=m.updated_at,
  )


@router.get("", response_model=list[JiraUserMappingOut])
async def list_user_mappings(
  integrationUserEmail: str | None = None,
  projectKey: str | None = None,
  db: AsyncSession = Depends(get_db),
) -> list[JiraUserMappingOut]:
  q = select(JiraUserMapping)
  if integrationUserEmail:
    q = q.where(JiraUserMapping.integration_user_email == _email(integrationUserEmail))
  if projectKey:
    q = q.where(JiraUserMapping.jira_project_key == _project_key(projectKey))
  res = await db.execute(q.order_by(JiraUserMapping.user_email.asc(), JiraUserMapping.jira_project_key.asc()))
  return [_mapping_out(m) for m in res.scalars().all()]


@router.post("", response_model=JiraUserMappingOut)
async def upsert_user_mapping(payload: JiraUserMappingIn, db: AsyncSession = Depends(get_db)) -> JiraUserMappingOut:
  user_email = _email(payload.userEmail)
  owner_email = _email(payload.integrationUserEmail)
  project_key = _project_key(payload.jiraProjectKey)
  if "@" not in user_email or "@" not in owner_email:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid email")

  # Null project keys never collide in the unique index, so match them explicitly.
  key_clause = (
    JiraUserMapping.jira_project_key.is_(None) if project_key is None else JiraUserMapping.jira_project_key == project_key
  )
  res = await db.execute(
    select(JiraUserMapping).where(
      JiraUserMapping.user_email == user_email,
      JiraUserMapping.integration_user_email == owner_email,
      key_clause,
    )
  )
  m = res.scalar_one_or_none()
  if not m:
    m = JiraUserMapping(user_email=user_email, integration_user_email=owner_email, jira_project_key=project_key)
    db.add(m)
  m.jira_assignee_name = payload.jiraAssigneeName.strip()
  m.jira_reporter_name = (payload.jiraReporterName or "").strip() or None
  await db.commit()
  return _mapping_out(m)


@router.delete("/{mapping_id}")
async def delete_user_mapping(mapping_id: str, db: AsyncSession = Depends(get_db)) -> dict:
  if not is_uuid(mapping_id):
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Mapping not found")
  res = await db.execute(delete(JiraUserMapping).where(JiraUserMapping.id == mapping_id))
  if not res.rowcount:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Mapping not found")
  await db.commit()
  return {"ok": True}
