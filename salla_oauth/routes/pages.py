"""
Example pages: home, account, and the merchant's orders and customers.
"""
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Request

from salla_oauth.config import Settings
from salla_oauth.dependencies.auth import SessionUser, get_current_user, get_optional_user, get_strategy
from salla_oauth.exceptions import SallaOAuthError
from salla_oauth.oauth import SallaStrategy
from salla_oauth.services.merchant_service import MerchantService
from salla_oauth.templating import templates

logger = structlog.get_logger()

router = APIRouter(tags=["Pages"])


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_merchant_service(
    request: Request,
    user: SessionUser = Depends(get_current_user),
    strategy: SallaStrategy = Depends(get_strategy),
) -> MerchantService:
    settings = get_app_settings(request)
    return MerchantService(user.access_token, settings.SALLA_API_BASE_URL, strategy.http)


@router.get("/")
async def index(request: Request, user: Optional[SessionUser] = Depends(get_optional_user)):
    """Home page."""
    return templates.TemplateResponse(
        request,
        "index.html",
        {"user": user.profile if user else None, "is_login": user is not None},
    )


@router.get("/account")
async def account(request: Request, user: SessionUser = Depends(get_current_user)):
    """Profile of the signed-in merchant."""
    return templates.TemplateResponse(
        request,
        "account.html",
        {"user": user.profile, "is_login": True},
    )


@router.get("/orders")
async def orders(request: Request, merchant: MerchantService = Depends(get_merchant_service)):
    """All orders of the merchant's store."""
    try:
        items = await merchant.list_orders()
        error = None
    except SallaOAuthError as e:
        logger.warning("orders_unavailable", error=str(e))
        items, error = [], str(e)

    return templates.TemplateResponse(
        request,
        "orders.html",
        {"orders": items, "error": error, "is_login": True},
    )


@router.get("/customers")
async def customers(request: Request, merchant: MerchantService = Depends(get_merchant_service)):
    """All customers of the merchant's store."""
    try:
        items = await merchant.list_customers()
        error = None
    except SallaOAuthError as e:
        logger.warning("customers_unavailable", error=str(e))
        items, error = [], str(e)

    return templates.TemplateResponse(
        request,
        "customers.html",
        {"customers": items, "error": error, "is_login": True},
    )


@router.get("/health")
async def health():
    """Health check."""
    return {"status": "healthy"}
