"""Articles (commodity classifications) router.

Endpoints:
    GET    /api/articles/?branch_id=   List articles
    POST   /api/articles/              Create article
"""

from fastapi import APIRouter, Depends
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from desicargo.auth.deps import require_permission
from desicargo.database import get_db
from desicargo.middleware.exceptions import PersistenceError
from desicargo.models.article import Article
from desicargo.models.branch import Branch
from desicargo.models.user import User
from desicargo.schemas.customer import ArticleCreate, ArticleOut
from desicargo.schemas.validators import ensure_uuid

router = APIRouter()


@router.get("/", response_model=list[ArticleOut])
async def list_articles(
    branch_id: str | None = None,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("customers.read")),
):
    """Articles of a branch plus the shared ones (no branch)."""
    query = select(Article).order_by(Article.name)
    if branch_id:
        ensure_uuid(branch_id, "branch")
        query = query.where(or_(Article.branch_id == branch_id, Article.branch_id.is_(None)))
    result = await db.execute(query)
    return [ArticleOut.model_validate(a) for a in result.scalars().all()]


@router.post("/", response_model=ArticleOut, status_code=201)
async def create_article(
    body: ArticleCreate,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("customers.write")),
):
    if body.branch_id:
        ensure_uuid(body.branch_id, "branch")
        if (await db.execute(select(Branch.id).where(Branch.id == body.branch_id))).first() is None:
            raise PersistenceError(
                f"Referenced branch does not exist: {body.branch_id}",
                error_code="REFERENTIAL_INTEGRITY",
            )

    article = Article(**body.model_dump())
    db.add(article)
    await db.flush()
    return ArticleOut.model_validate(article)
