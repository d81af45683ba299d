"""Common FastAPI dependencies."""
from typing import Annotated, TypeAlias

from fastapi import Depends
from sqlalchemy.orm import Session

from app.db.session import get_db

DbDep: TypeAlias = Annotated[Session, Depends(get_db)]
