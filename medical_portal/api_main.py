import logging
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from pydantic import BaseModel

from . import portal
from .access import Actor, Operation, actor_for, require
from .auth_models import StaffUser
from .auth_security import create_access_token, staff_id_from_token
from .auth_service import authenticate, create_staff_user, get_staff_user_by_id
from .db import engine
from .errors import AuthorizationError, InvalidTransitionError, NotFoundError, PortalError, ValidationError
from .models import EntityKind
from .schemas import (
    AppointmentIn,
    AppointmentOut,
    AppointmentPatch,
    BlogPostIn,
    BlogPostOut,
    BlogPostPatch,
    BlogPostPut,
    BookingOut,
    DoctorIn,
    DoctorOut,
    DoctorPatch,
    MeOut,
    RegisterIn,
    ServiceIn,
    ServiceOut,
    ServicePatch,
    StatusIn,
    TestimonialIn,
    TestimonialOut,
    TestimonialPatch,
    TokenOut,
)
from .seed import seed_base
from .services import init_db
from .settings import SEED_ON_STARTUP, configure_logging

logger = logging.getLogger(__name__)

# OAuth2 Bearer (Authorization: Bearer <token>), facoltativo: senza token si è "pubblico"
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)

app = FastAPI(title="Medical Portal API", version="1.0.0")


# Startup

@app.on_event("startup")
def startup() -> None:
    # Crea tabelle (incluse staff_users) e seed base (idempotente)
    configure_logging()
    init_db()
    logger.info("API avviata, DB: %s", engine.url)
    if SEED_ON_STARTUP:
        seed_base()


# Errori di dominio -> HTTP

STATUS_BY_ERROR: dict[type[PortalError], int] = {
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidTransitionError: status.HTTP_409_CONFLICT,
    AuthorizationError: status.HTTP_403_FORBIDDEN,
}


@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError) -> JSONResponse:
    code = STATUS_BY_ERROR.get(type(exc), status.HTTP_400_BAD_REQUEST)
    return JSONResponse(status_code=code, content={"error": exc.kind, "detail": exc.message})


# Dipendenze auth

def _user_from_token(token: str) -> StaffUser:
    # protezione extra: elimina spazi / virgolette accidentali
    token = token.strip().strip('"').strip("'")

    user_id = staff_id_from_token(token)
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token non valido")

    u = get_staff_user_by_id(user_id)
    if not u or not u.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Utente non valido")
    return u


def get_current_user(token: str | None = Depends(oauth2_scheme)) -> StaffUser:
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Autenticazione richiesta",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return _user_from_token(token)


def get_actor(token: str | None = Depends(oauth2_scheme)) -> Actor:
    """Nessun token -> pubblico; token valido -> staff; token non valido -> 401."""
    if not token:
        return Actor.PUBLIC
    _user_from_token(token)
    return actor_for(True)


# AUTH endpoints

@app.post("/api/auth/login", response_model=TokenOut)
def login(form: OAuth2PasswordRequestForm = Depends()) -> TokenOut:
    u = authenticate(form.username, form.password)
    if not u:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Credenziali non valide")

    token = create_access_token(subject=u.id, username=u.username)
    return TokenOut(access_token=token)


@app.post("/api/auth/register", response_model=dict, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterIn, user: StaffUser = Depends(get_current_user)) -> dict[str, Any]:
    # solo lo staff crea altri account staff (il primo nasce da CLI: add-staff)
    user_id = create_staff_user(payload.username, payload.password)
    return {"ok": True, "user_id": user_id}


@app.get("/api/me", response_model=MeOut)
def me(user: StaffUser = Depends(get_current_user)) -> MeOut:
    return MeOut(id=user.id, username=user.username, is_active=user.is_active)


def _authorized(kind: EntityKind, operation: Operation):
    """
    Dipendenza che applica la tabella delle regole prima della validazione del body:
    chi non può scrivere riceve 403, non un 422 con lo schema della risorsa.
    """

    def dependency(actor: Actor = Depends(get_actor)) -> Actor:
        require(actor, kind, operation)
        return actor

    return dependency


# CRUD per entità (stesse regole per tutte, le differenze stanno in access.py)

def _crud_router(
    kind: EntityKind,
    prefix: str,
    in_schema: type[BaseModel],
    patch_schema: type[BaseModel],
    out_schema: type[BaseModel],
    put_schema: type[BaseModel] | None = None,
    with_create: bool = True,
) -> APIRouter:
    router = APIRouter(prefix=prefix)
    # PUT = sostituzione dei campi modificabili dallo staff (default: stesso schema della creazione)
    put_schema = put_schema or in_schema

    @router.get("", response_model=list[out_schema])
    def list_items(request: Request, actor: Actor = Depends(get_actor)) -> list[dict]:
        # filtri da query string; i nomi ammessi sono validati dallo store
        return portal.list_entities(actor, kind, dict(request.query_params))

    @router.get("/{record_id}", response_model=out_schema)
    def get_item(record_id: str, actor: Actor = Depends(get_actor)) -> dict:
        return portal.get_entity(actor, kind, record_id)

    if with_create:
        @router.post("", response_model=out_schema, status_code=status.HTTP_201_CREATED)
        def create_item(payload: in_schema, actor: Actor = Depends(_authorized(kind, Operation.CREATE))) -> dict:
            return portal.create_entity(actor, kind, payload.model_dump())

    @router.patch("/{record_id}", response_model=out_schema)
    def patch_item(
        record_id: str, payload: patch_schema, actor: Actor = Depends(_authorized(kind, Operation.UPDATE))
    ) -> dict:
        return portal.update_entity(actor, kind, record_id, payload.model_dump(exclude_unset=True))

    @router.put("/{record_id}", response_model=out_schema)
    def put_item(
        record_id: str, payload: put_schema, actor: Actor = Depends(_authorized(kind, Operation.UPDATE))
    ) -> dict:
        return portal.update_entity(actor, kind, record_id, payload.model_dump())

    @router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_item(record_id: str, actor: Actor = Depends(_authorized(kind, Operation.DELETE))) -> Response:
        portal.delete_entity(actor, kind, record_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router


# Appuntamenti: la creazione è la prenotazione pubblica (risposta senza dati del record)

appointments_router = APIRouter(prefix="/api/appointments")


@appointments_router.post("", response_model=BookingOut, status_code=status.HTTP_201_CREATED)
def book_appointment(
    payload: AppointmentIn, actor: Actor = Depends(_authorized(EntityKind.APPOINTMENT, Operation.CREATE))
) -> BookingOut:
    appointment = portal.book_appointment(actor, payload.model_dump())
    return BookingOut(
        appointment_id=appointment["id"],
        status=appointment["status"],
        message="Richiesta di appuntamento registrata: verrà confermata dallo staff.",
    )


@appointments_router.patch("/{appointment_id}/status", response_model=AppointmentOut)
def set_appointment_status(
    appointment_id: str,
    payload: StatusIn,
    actor: Actor = Depends(_authorized(EntityKind.APPOINTMENT, Operation.UPDATE)),
) -> dict:
    return portal.set_appointment_status(actor, appointment_id, payload.status)


@app.post("/api/blog-posts/{post_id}/views", response_model=BlogPostOut)
def view_blog_post(post_id: str, actor: Actor = Depends(get_actor)) -> dict:
    return portal.view_blog_post(actor, post_id)


app.include_router(appointments_router)
app.include_router(_crud_router(EntityKind.DOCTOR, "/api/doctors", DoctorIn, DoctorPatch, DoctorOut))
app.include_router(_crud_router(EntityKind.SERVICE, "/api/services", ServiceIn, ServicePatch, ServiceOut))
app.include_router(
    _crud_router(EntityKind.BLOG_POST, "/api/blog-posts", BlogPostIn, BlogPostPatch, BlogPostOut, BlogPostPut)
)
app.include_router(
    _crud_router(EntityKind.TESTIMONIAL, "/api/testimonials", TestimonialIn, TestimonialPatch, TestimonialOut)
)
app.include_router(
    _crud_router(
        EntityKind.APPOINTMENT, "/api/appointments", AppointmentIn, AppointmentPatch, AppointmentOut, with_create=False
    )
)
