from fastapi import APIRouter
from app.api.v1.endpoints import waitlist, webhooks

api_router = APIRouter()

api_router.include_router(waitlist.router, prefix="/waitlist", tags=["waitlist"])
api_router.include_router(webhooks.router)


@api_router.get("/health")
async def health_check():
    return {"status": "OK", "message": "Limited Edition Access API is running"}
