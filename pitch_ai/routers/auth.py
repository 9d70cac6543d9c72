import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from pitch_ai.dependencies import get_current_user
from pitch_ai.schemas.auth import LoginRequest, RegisterRequest
from pitch_ai.supabase_client import get_supabase_admin, get_supabase_auth, to_jsonable

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

PROFILES_TABLE = "Profiles"


def _sign_up(payload: RegisterRequest):
    supabase = get_supabase_auth()
    return supabase.auth.sign_up({
        "email": payload.email,
        "password": payload.password,
        "options": {
            "data": {
                "first_name": payload.firstName,
                "last_name": payload.lastName,
                "name": f"{payload.firstName} {payload.lastName}",
            }
        },
    })


def _create_profile(user_id: str, payload: RegisterRequest):
    supabase = get_supabase_admin()
    response = supabase.table(PROFILES_TABLE).insert({
        "id": user_id,
        "first_name": payload.firstName,
        "last_name": payload.lastName,
        "email": payload.email,
        "display_name": None,
    }).execute()
    return response.data[0] if response.data else None


def _load_profile(user_id: str):
    supabase = get_supabase_admin()
    response = supabase.table(PROFILES_TABLE).select("*").eq("id", user_id).limit(1).execute()
    return response.data[0] if response.data else None


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest):
    """Create a Supabase user and its profile row."""
    if not payload.firstName or not payload.lastName or not payload.email or not payload.password:
        raise HTTPException(status_code=400, detail="All fields are required")

    try:
        auth_response = await asyncio.to_thread(_sign_up, payload)
    except RuntimeError:
        logger.exception("Supabase not configured")
        raise HTTPException(status_code=500, detail="Internal server error")
    except Exception as e:
        logger.error("Auth error during registration: %s", e)
        raise HTTPException(status_code=400, detail=str(e))

    user = auth_response.user
    if not user:
        raise HTTPException(status_code=400, detail="User creation failed")

    profile = None
    try:
        profile = await asyncio.to_thread(_create_profile, user.id, payload)
    except Exception as e:
        # Registration still succeeds without a profile row
        logger.error("Profile creation error for %s: %s", user.id, e)

    return {
        "message": "User registered successfully",
        "user": to_jsonable(user),
        "session": to_jsonable(auth_response.session),
        "profile": profile,
    }


@router.post("/login")
async def login(payload: LoginRequest):
    """Sign in with email and password."""
    if not payload.email or not payload.password:
        raise HTTPException(status_code=400, detail="Email and password are required")

    try:
        auth_response = await asyncio.to_thread(
            lambda: get_supabase_auth().auth.sign_in_with_password({
                "email": payload.email,
                "password": payload.password,
            })
        )
    except RuntimeError:
        logger.exception("Supabase not configured")
        raise HTTPException(status_code=500, detail="Internal server error")
    except Exception as e:
        logger.info("Login error: %s", e)
        raise HTTPException(status_code=400, detail=str(e))

    user = auth_response.user
    profile = None
    try:
        profile = await asyncio.to_thread(_load_profile, user.id)
    except Exception as e:
        logger.warning("Could not load profile for %s: %s", user.id, e)

    return {
        "message": "Login successful",
        "user": to_jsonable(user),
        "session": to_jsonable(auth_response.session),
        "profile": profile,
    }


@router.get("/validate")
async def validate(user: dict = Depends(get_current_user)):
    return {"valid": True, "user": user}
