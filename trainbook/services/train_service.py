import logging
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from trainbook.core.errors import IntegrityViolation, NotFoundError, ValidationError
from trainbook.models.passenger import Passenger
from trainbook.models.train import Train
from trainbook.schemas.train import TrainIn, TrainUpdate
from trainbook.services.derivations import recompute_travel_duration

logger = logging.getLogger(__name__)


def get_train(db: Session, train_id: str) -> Train:
    t = db.get(Train, train_id)
    if not t:
        raise NotFoundError(f"train {train_id} not found")
    return t


def create_train(db: Session, body: TrainIn) -> Train:
    if not body.train_id:
        raise ValidationError("train_id is required")
    if db.get(Train, body.train_id) is not None:
        raise IntegrityViolation(f"train {body.train_id} already exists")

    train = Train(**body.model_dump())
    recompute_travel_duration(train)

    db.add(train)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise IntegrityViolation(str(e.orig)) from e
    db.refresh(train)
    logger.info("created train %s", train.train_id)
    return train


def update_train(db: Session, train_id: str, body: TrainUpdate) -> Train:
    train = get_train(db, train_id)
    changes = body.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(train, field, value)
    try:
        recompute_travel_duration(train)
    except ValidationError:
        # drop the pending attribute changes so the stored row is untouched
        db.rollback()
        raise
    db.commit()
    db.refresh(train)
    logger.info("updated train %s fields=%s", train_id, sorted(changes))
    return train


def delete_train(db: Session, train_id: str) -> None:
    train = get_train(db, train_id)
    riders = db.query(Passenger).filter(Passenger.train_id == train_id).count()
    if riders:
        raise IntegrityViolation(f"train {train_id} is referenced by {riders} passenger(s)")
    db.delete(train)
    db.commit()
    logger.info("deleted train %s", train_id)
