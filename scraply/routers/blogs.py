from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..deps import get_current_user, get_db

router = APIRouter(prefix="/blogs", tags=["blogs"])


def newest_first(query):
    return query.order_by(models.BlogPost.created_at.desc(), models.BlogPost.id.desc())


@router.get("/", response_model=schemas.Envelope[List[schemas.BlogOut]])
def list_blogs(db: Session = Depends(get_db)):
    return {"data": newest_first(db.query(models.BlogPost)).all()}


@router.get("/featured", response_model=schemas.Envelope[List[schemas.BlogOut]])
def list_featured_blogs(db: Session = Depends(get_db)):
    query = db.query(models.BlogPost).filter(models.BlogPost.featured == True)
    return {"data": newest_first(query).all()}


@router.get("/{blog_id}", response_model=schemas.Envelope[schemas.BlogOut])
def get_blog(blog_id: int, db: Session = Depends(get_db)):
    blog = db.get(models.BlogPost, blog_id)
    if not blog:
        raise HTTPException(status_code=404, detail="Blog not found")
    return {"data": blog}


@router.post(
    "/",
    response_model=schemas.Envelope[schemas.BlogOut],
    status_code=status.HTTP_201_CREATED,
)
def create_blog(blog_in: schemas.BlogCreate, db: Session = Depends(get_db)):
    """
    Publish a blog post from the public form. Posts cannot be edited or
    removed through the API.
    """
    blog = models.BlogPost(**blog_in.model_dump())
    db.add(blog)
    db.commit()
    db.refresh(blog)
    return {"message": "Blog created successfully", "data": blog}


@router.post(
    "/{blog_id}/comments",
    response_model=schemas.Envelope[schemas.BlogOut],
    status_code=status.HTTP_201_CREATED,
)
def add_comment(
    blog_id: int,
    comment_in: schemas.CommentCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """
    Append a comment to a post under the commenter's username.

    Raises
    ------
    HTTPException
        - 404 if the post does not exist.
    """
    blog = db.get(models.BlogPost, blog_id)
    if not blog:
        raise HTTPException(status_code=404, detail="Blog not found")

    blog.comments.append(models.BlogComment(username=current_user.username, comment=comment_in.comment))
    db.commit()
    db.refresh(blog)
    return {"message": "Comment added", "data": blog}
