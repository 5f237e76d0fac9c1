import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .db import get_db
from .errors import Conflict, InvalidRequest, NotFound
from .models import Article, Product, Project, ServiceCategory, Subscriber, Testimonial
from .schemas import (
    ArticleOut, ProductOut, ProjectOut, ServiceCategoryNode, SubscribePayload,
    TestimonialOut, TestimonialSubmit,
)

router = APIRouter()

logger = logging.getLogger(__name__)


def _parse_ids(ids: str) -> List[int]:
    try:
        return [int(i) for i in ids.split(",") if i.strip()]
    except ValueError:
        raise InvalidRequest("ids must be a comma separated list of integers")


# ------------------------------
# GET /products  (by category, or by ids for the wishlist page)
# ------------------------------
@router.get("/products", response_model=List[ProductOut])
def list_products(
    category: Optional[str] = Query(None),
    ids: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    if ids:
        id_list = _parse_ids(ids)
        if not id_list:
            return []
        return db.query(Product).filter(Product.id.in_(id_list)).all()

    query = db.query(Product).filter(Product.archived.is_(False))
    if category:
        query = query.filter(Product.category == category)
    return query.order_by(Product.name.asc()).all()


@router.get("/products/{product_id}", response_model=ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    product = (
        db.query(Product)
        .filter(Product.id == product_id, Product.archived.is_(False))
        .first()
    )
    if not product:
        raise NotFound("Product not found")
    return product


# ------------------------------
# GET /articles  (published blog posts)
# ------------------------------
@router.get("/articles", response_model=List[ArticleOut])
def list_articles(limit: Optional[int] = None, db: Session = Depends(get_db)):
    query = _published_articles(db).order_by(Article.published_at.desc())
    if limit and limit > 0:
        query = query.limit(limit)
    return query.all()


@router.get("/articles/{slug}", response_model=ArticleOut)
def get_article(slug: str, db: Session = Depends(get_db)):
    article = _published_articles(db).filter(Article.slug == slug).first()
    if not article:
        raise NotFound("Article not found or not published")
    return article


def _published_articles(db: Session):
    # drafts have no published_at; scheduled posts have one in the future
    return db.query(Article).filter(
        Article.published_at.isnot(None),
        Article.published_at <= datetime.utcnow(),
    )


# ------------------------------
# GET /projects  (published showcase)
# ------------------------------
@router.get("/projects", response_model=List[ProjectOut])
def list_projects(db: Session = Depends(get_db)):
    return (
        db.query(Project)
        .filter(Project.is_published.is_(True))
        .order_by(Project.display_order.asc(), Project.created_at.desc())
        .all()
    )


# ------------------------------
# GET /service-categories  (navigation tree)
# ------------------------------
def build_category_tree(categories: List[ServiceCategory]) -> List[Dict[str, Any]]:
    """Nest categories under their parents, sorted by display_order at every level.

    A category whose parent is missing is treated as top level.
    """
    nodes = {
        c.id: {
            "id": c.id,
            "name": c.name,
            "slug": c.slug,
            "description": c.description,
            "parent_id": c.parent_id,
            "display_order": c.display_order or 0,
            "href": f"/services/{c.slug}",
            "subcategories": [],
        }
        for c in categories
    }

    def _rooted(category_id):
        seen = set()
        while category_id is not None and category_id in nodes:
            if category_id in seen:
                return False
            seen.add(category_id)
            category_id = nodes[category_id]["parent_id"]
        return True

    tree = []
    for c in categories:
        node = nodes[c.id]
        # a parent cycle would nest forever; break it by promoting the node
        if c.parent_id is not None and c.parent_id in nodes and _rooted(c.id):
            nodes[c.parent_id]["subcategories"].append(node)
        else:
            tree.append(node)

    for node in nodes.values():
        node["subcategories"].sort(key=lambda n: n["display_order"])
    tree.sort(key=lambda n: n["display_order"])
    return tree


@router.get("/service-categories", response_model=List[ServiceCategoryNode])
def list_service_categories(db: Session = Depends(get_db)):
    categories = db.query(ServiceCategory).order_by(ServiceCategory.display_order.asc()).all()
    return build_category_tree(categories)


# ------------------------------
# Testimonials
# ------------------------------
@router.get("/testimonials", response_model=List[TestimonialOut])
def list_testimonials(
    featured: bool = False,
    limit: Optional[str] = None,
    db: Session = Depends(get_db),
):
    query = (
        db.query(Testimonial)
        .filter(Testimonial.approved.is_(True))
        .order_by(Testimonial.created_at.desc(), Testimonial.id.desc())
    )
    if featured:
        query = query.filter(Testimonial.is_featured.is_(True))

    # a non-numeric or non-positive limit is ignored
    if limit and limit.isdigit() and int(limit) > 0:
        query = query.limit(int(limit))
    return query.all()


@router.post("/testimonials/submit", status_code=status.HTTP_201_CREATED)
def submit_testimonial(payload: TestimonialSubmit, db: Session = Depends(get_db)):
    client_name = payload.client_name.strip()
    quote = payload.quote.strip()
    if not client_name or not payload.email.strip() or not quote or not payload.consent:
        raise InvalidRequest("Name, Email, Quote, and Consent are required.")

    db.add(Testimonial(client_name=client_name, quote=quote, approved=False))
    db.commit()
    return {"message": "Thank you! Your testimonial has been submitted for review."}


# ------------------------------
# POST /subscribe  (newsletter)
# ------------------------------
@router.post("/subscribe", status_code=status.HTTP_201_CREATED)
def subscribe(payload: SubscribePayload, db: Session = Depends(get_db)):
    email = payload.email.strip().lower()
    if db.query(Subscriber).filter(Subscriber.email == email).first():
        raise Conflict("This email is already subscribed. Thank you!")

    db.add(Subscriber(email=email))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("This email is already subscribed. Thank you!")

    logger.info("New subscriber added")
    return {"message": "Thank you for subscribing! Stay tuned for updates."}
