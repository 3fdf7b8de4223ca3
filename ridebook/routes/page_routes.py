import logging

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from ridebook.auth import actions
from ridebook.auth.client import AuthClient, write_session_cookies
from ridebook.auth.dependencies import RoleContext, get_auth_client, require_role
from ridebook.auth.roles import LANDING_PATH, Role
from ridebook.routes.auth_routes import revalidate_layout

router = APIRouter(tags=['pages'])

logger = logging.getLogger(__name__)


class DashboardResponse(BaseModel):
    dashboard: str
    email: str
    role: Role
    account_status: str = 'active'


def render_dashboard(context: RoleContext, response: Response) -> DashboardResponse:
    revalidate_layout(response)
    return DashboardResponse(
        dashboard=context.role.value,
        email=context.user.email,
        role=context.role,
    )


def sign_out_response(client: AuthClient) -> RedirectResponse:
    try:
        actions.sign_out(client)
    except SQLAlchemyError:
        client.db.rollback()
        logger.exception('Session revocation failed')

    response = RedirectResponse(url=LANDING_PATH, status_code=status.HTTP_303_SEE_OTHER)
    write_session_cookies(response, client.pending_cookies)
    return revalidate_layout(response)


@router.get('/')
def root():
    return {
        'status': 'RideBook API Running',
        'login': '/login',
        'signup': '/signup',
    }


@router.get('/passengers', response_model=DashboardResponse)
def passenger_dashboard(
    response: Response,
    context: RoleContext = Depends(require_role(Role.PASSENGER)),
):
    return render_dashboard(context, response)


@router.get('/driver', response_model=DashboardResponse)
def driver_dashboard(
    response: Response,
    context: RoleContext = Depends(require_role(Role.DRIVER)),
):
    return render_dashboard(context, response)


@router.get('/admin', response_model=DashboardResponse)
def admin_dashboard(
    response: Response,
    context: RoleContext = Depends(require_role(Role.ADMIN)),
):
    return render_dashboard(context, response)


def sign_out(client: AuthClient = Depends(get_auth_client)):
    return sign_out_response(client)


for dashboard_role in Role:
    router.add_api_route(
        f'{dashboard_role.dashboard_path}/sign-out',
        sign_out,
        methods=['POST'],
        name=f'{dashboard_role.value}_sign_out',
    )
