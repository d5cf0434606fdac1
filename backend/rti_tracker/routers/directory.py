"""Reference data endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import District
from ..schemas import DistrictResponse

router = APIRouter(prefix="/districts", tags=["directory"])


@router.get("", response_model=list[DistrictResponse])
def list_districts(db: Session = Depends(get_db)):
    """Districts grouped by state (public: the registration form needs them)."""
    return db.query(District).order_by(District.state_name.asc(), District.district_name.asc()).all()
