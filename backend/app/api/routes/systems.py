"""Read-only listings of the systems that imports and onboarding feed."""
from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.schemas.systems import GoalPayload, HabitPayload, MealPlanPayload, RoutinePayload, WorkoutPlanPayload
from app.db.deps import get_db
from app.db.models.systems import Goal, Habit, MealPlan, Routine, WorkoutPlan

router = APIRouter(prefix="/api", tags=["systems"])


@router.get("/routines", response_model=List[RoutinePayload])
def list_routines(user_id: UUID = Query(...), db: Session = Depends(get_db)) -> List[RoutinePayload]:
    rows = db.query(Routine).filter(Routine.user_id == user_id).order_by(Routine.created_at.desc()).all()
    return [RoutinePayload.model_validate(row) for row in rows]


@router.get("/workout-plans", response_model=List[WorkoutPlanPayload])
def list_workout_plans(user_id: UUID = Query(...), db: Session = Depends(get_db)) -> List[WorkoutPlanPayload]:
    rows = db.query(WorkoutPlan).filter(WorkoutPlan.user_id == user_id).order_by(WorkoutPlan.created_at.desc()).all()
    return [WorkoutPlanPayload.model_validate(row) for row in rows]


@router.get("/meal-plans", response_model=List[MealPlanPayload])
def list_meal_plans(user_id: UUID = Query(...), db: Session = Depends(get_db)) -> List[MealPlanPayload]:
    rows = db.query(MealPlan).filter(MealPlan.user_id == user_id).order_by(MealPlan.created_at.desc()).all()
    return [MealPlanPayload.model_validate(row) for row in rows]


@router.get("/goals", response_model=List[GoalPayload])
def list_goals(
    user_id: UUID = Query(...),
    active_only: bool = Query(default=True, alias="activeOnly"),
    db: Session = Depends(get_db),
) -> List[GoalPayload]:
    query = db.query(Goal).filter(Goal.user_id == user_id)
    if active_only:
        query = query.filter(Goal.is_active.is_(True))
    return [GoalPayload.model_validate(row) for row in query.order_by(Goal.created_at.asc()).all()]


@router.get("/habits", response_model=List[HabitPayload])
def list_habits(
    user_id: UUID = Query(...),
    active_only: bool = Query(default=True, alias="activeOnly"),
    db: Session = Depends(get_db),
) -> List[HabitPayload]:
    query = db.query(Habit).filter(Habit.user_id == user_id)
    if active_only:
        query = query.filter(Habit.is_active.is_(True))
    return [HabitPayload.model_validate(row) for row in query.order_by(Habit.created_at.asc()).all()]
