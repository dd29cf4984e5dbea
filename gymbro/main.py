from fastapi import FastAPI, HTTPException, Header, Depends, Request, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from typing import Optional, List
import logging, os, certifi

os.environ.setdefault("SSL_CERT_FILE", certifi.where())

from .config import Config, config as default_config
from .gateway import SqlGateway, GatewayError, create_db_engine, init_db
from .mock_store import MockStore, MOCK_USER_ID, MOCK_USER_EMAIL
from .models import Chapter, DailyCheckIn, Profile
from .schemas import *
from .auth import create_token, decode_token, verify_password, deliver_link, LINK_TTL
from .profiles import ProfileService
from .chapters import ChapterService
from .check_ins import CheckInService
from .coach import Coach, TRANSPORT_ERRORS, APOLOGY_MESSAGE
from . import accounts, oauth, seed

logger = logging.getLogger(__name__)


def create_app(config: Optional[Config] = None, gateway=None, coach: Optional[Coach] = None) -> FastAPI:
    config = config or default_config
    config.validate()
    if gateway is None:
        if config.mock_mode:
            logger.warning("DATABASE_URL not set, running in mock mode with an in-memory store")
            gateway = MockStore()
        else:
            engine = create_db_engine(config.DATABASE_URL)
            init_db(engine)
            gateway = SqlGateway(engine)

    app = FastAPI(title="Gymbro API")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"], allow_credentials=True,
        allow_methods=["*"], allow_headers=["*"],
    )
    app.state.config = config
    app.state.gateway = gateway
    app.state.coach = coach or Coach(config)

    @app.exception_handler(GatewayError)
    async def gateway_error(request: Request, exc: GatewayError):
        # account lookups call the gateway directly
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    _register_routes(app)
    return app


# Dependencies
def get_config(request: Request) -> Config:
    return request.app.state.config

def get_gateway(request: Request):
    return request.app.state.gateway

def get_user(authorization: Optional[str] = Header(None), cfg: Config = Depends(get_config),
             gateway=Depends(get_gateway)) -> UserOut:
    if cfg.mock_mode:
        return UserOut(id=MOCK_USER_ID, email=MOCK_USER_EMAIL, mock_mode=True)
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(401, "Missing token")
    parts = authorization.split()
    token = parts[1] if len(parts) > 1 else None
    payload = decode_token(token, cfg.JWT_SECRET) if token else None
    if not payload: raise HTTPException(401, "Invalid token")
    u = accounts.get_user(gateway, payload["sub"])
    if not u: raise HTTPException(401, "User not found")
    return UserOut(id=u.id, email=u.email)

def profile_service(user: UserOut = Depends(get_user), gateway=Depends(get_gateway)) -> ProfileService:
    return ProfileService(gateway, user.id)

def chapter_service(user: UserOut = Depends(get_user), gateway=Depends(get_gateway)) -> ChapterService:
    svc = ChapterService(gateway, user.id)
    svc.fetch()
    return svc

def check_in_service(profiles: ProfileService = Depends(profile_service),
                     gateway=Depends(get_gateway)) -> CheckInService:
    svc = CheckInService(gateway, profiles.user_id, profiles=profiles)
    svc.fetch()
    return svc


# Serializers
def _profile_out(p: Optional[Profile]) -> Optional[ProfileOut]:
    return ProfileOut(**p.model_dump()) if p else None

def _chapter_out(svc: ChapterService, c: Optional[Chapter]) -> Optional[ChapterOut]:
    if c is None:
        return None
    return ChapterOut(**c.model_dump(), progress=svc.progress(c), days_elapsed=svc.days_elapsed(c))

def _check_in_out(ci: Optional[DailyCheckIn]) -> Optional[CheckInOut]:
    return CheckInOut(**ci.model_dump()) if ci else None

def _fail(error: Optional[str], fetch_error: Optional[str] = None):
    if error or fetch_error:
        raise HTTPException(400, error or fetch_error)


def _register_routes(app: FastAPI) -> None:

    @app.get("/health")
    def health(cfg: Config = Depends(get_config)):
        return {"status": "ok", "mock_mode": cfg.mock_mode, "coach_configured": cfg.coach_configured}

    # Auth
    def _issue(cfg: Config, user_id: str) -> TokenResponse:
        return TokenResponse(access_token=create_token(user_id, cfg.JWT_SECRET))

    def _mock_token(cfg: Config) -> TokenResponse:
        return _issue(cfg, MOCK_USER_ID)

    @app.post("/auth/register", response_model=TokenResponse)
    def register(req: RegisterRequest, cfg: Config = Depends(get_config), gateway=Depends(get_gateway)):
        if cfg.mock_mode: return _mock_token(cfg)
        if accounts.get_user_by_email(gateway, req.email):
            raise HTTPException(400, "Email already registered")
        u = accounts.create_user(gateway, req.email, req.password)
        return _issue(cfg, u.id)

    @app.post("/auth/login", response_model=TokenResponse)
    def login(req: LoginRequest, cfg: Config = Depends(get_config), gateway=Depends(get_gateway)):
        if cfg.mock_mode: return _mock_token(cfg)
        u = accounts.get_user_by_email(gateway, req.email)
        if not u or not verify_password(req.password, u.password_hash):
            raise HTTPException(401, "Invalid credentials")
        return _issue(cfg, u.id)

    @app.post("/auth/magic-link")
    def magic_link(req: EmailRequest, cfg: Config = Depends(get_config), gateway=Depends(get_gateway)):
        if cfg.mock_mode: return {"ok": True}
        u = accounts.get_or_create_user(gateway, req.email)
        token = create_token(u.id, cfg.JWT_SECRET, purpose="magic", exp=LINK_TTL)
        deliver_link(u.email, "Sign-in", f"{cfg.APP_URL}/?magic_token={token}")
        return {"ok": True}

    @app.post("/auth/magic-link/verify", response_model=TokenResponse)
    def magic_link_verify(req: TokenRequest, cfg: Config = Depends(get_config), gateway=Depends(get_gateway)):
        if cfg.mock_mode: return _mock_token(cfg)
        payload = decode_token(req.token, cfg.JWT_SECRET, purpose="magic")
        if not payload or not accounts.get_user(gateway, payload["sub"]):
            raise HTTPException(401, "Link is invalid or expired")
        return _issue(cfg, payload["sub"])

    @app.post("/auth/password-reset")
    def password_reset(req: EmailRequest, cfg: Config = Depends(get_config), gateway=Depends(get_gateway)):
        if cfg.mock_mode: return {"ok": True}
        u = accounts.get_user_by_email(gateway, req.email)
        # same answer for unknown emails so accounts can't be probed
        if u:
            token = create_token(u.id, cfg.JWT_SECRET, purpose="reset", exp=LINK_TTL)
            deliver_link(u.email, "Password reset", f"{cfg.APP_URL}/?reset_token={token}")
        return {"ok": True}

    @app.post("/auth/password-reset/confirm", response_model=TokenResponse)
    def password_reset_confirm(req: PasswordResetConfirm, cfg: Config = Depends(get_config),
                               gateway=Depends(get_gateway)):
        if cfg.mock_mode: return _mock_token(cfg)
        payload = decode_token(req.token, cfg.JWT_SECRET, purpose="reset")
        u = accounts.set_password(gateway, payload["sub"], req.new_password) if payload else None
        if not u: raise HTTPException(401, "Link is invalid or expired")
        return _issue(cfg, u.id)

    @app.get("/auth/oauth/google", response_model=OAuthStart)
    def oauth_start(cfg: Config = Depends(get_config)):
        if cfg.mock_mode:
            return OAuthStart(url=f"{cfg.APP_URL}/?access_token={_mock_token(cfg).access_token}")
        if not cfg.google_configured:
            raise HTTPException(400, "Google sign-in is not configured")
        state = create_token("google", cfg.JWT_SECRET, purpose="oauth-state", exp=LINK_TTL)
        return OAuthStart(url=oauth.authorization_url(cfg, state))

    @app.get("/auth/oauth/google/callback")
    def oauth_callback(code: str = Query(...), state: str = Query(...), cfg: Config = Depends(get_config),
                       gateway=Depends(get_gateway)):
        if not decode_token(state, cfg.JWT_SECRET, purpose="oauth-state"):
            raise HTTPException(400, "Invalid OAuth state")
        try:
            email = oauth.fetch_email(cfg, code)
        except oauth.OAuthError as e:
            raise HTTPException(400, str(e))
        u = accounts.get_or_create_user(gateway, email)
        return RedirectResponse(f"{cfg.APP_URL}/?access_token={_issue(cfg, u.id).access_token}")

    @app.get("/auth/me", response_model=UserOut)
    def me(user: UserOut = Depends(get_user)):
        return user

    # Profile
    @app.get("/profile", response_model=Optional[ProfileOut])
    def get_profile(svc: ProfileService = Depends(profile_service)):
        p = svc.fetch()
        _fail(svc.error)
        return _profile_out(p)

    @app.put("/profile", response_model=ProfileOut)
    def save_profile(form: ProfileForm, svc: ProfileService = Depends(profile_service)):
        _fail(svc.save(form))
        return _profile_out(svc.profile)

    # Chapters
    @app.get("/chapters", response_model=List[ChapterOut])
    def list_chapters(svc: ChapterService = Depends(chapter_service)):
        _fail(svc.error)
        return [_chapter_out(svc, c) for c in svc.chapters]

    @app.post("/chapters", response_model=List[ChapterOut])
    def add_chapter(form: ChapterForm, svc: ChapterService = Depends(chapter_service)):
        _fail(svc.add(form), svc.error)
        return [_chapter_out(svc, c) for c in svc.chapters]

    @app.post("/chapters/defaults", response_model=List[ChapterOut])
    def preload_chapters(svc: ChapterService = Depends(chapter_service)):
        _fail(svc.preload_defaults(), svc.error)
        return [_chapter_out(svc, c) for c in svc.chapters]

    def _require_chapter(svc: ChapterService, chapter_id: str) -> None:
        _fail(svc.error)
        if not any(c.id == chapter_id for c in svc.chapters):
            raise HTTPException(404, "Chapter not found")

    @app.put("/chapters/{chapter_id}", response_model=List[ChapterOut])
    def update_chapter(chapter_id: str, patch: ChapterUpdate, svc: ChapterService = Depends(chapter_service)):
        _require_chapter(svc, chapter_id)
        _fail(svc.update(chapter_id, patch.model_dump(exclude_none=True)), svc.error)
        return [_chapter_out(svc, c) for c in svc.chapters]

    @app.post("/chapters/{chapter_id}/status", response_model=List[ChapterOut])
    def set_chapter_status(chapter_id: str, req: StatusRequest, svc: ChapterService = Depends(chapter_service)):
        _require_chapter(svc, chapter_id)
        _fail(svc.set_status(chapter_id, req.status), svc.error)
        return [_chapter_out(svc, c) for c in svc.chapters]

    @app.delete("/chapters/{chapter_id}")
    def delete_chapter(chapter_id: str, svc: ChapterService = Depends(chapter_service)):
        _require_chapter(svc, chapter_id)
        _fail(svc.delete(chapter_id))
        return {"ok": True}

    # Check-ins
    @app.get("/check-ins", response_model=List[CheckInOut])
    def list_check_ins(svc: CheckInService = Depends(check_in_service)):
        _fail(svc.error)
        return [_check_in_out(ci) for ci in svc.check_ins]

    @app.post("/check-ins", response_model=CheckInSaved)
    def add_check_in(form: CheckInForm, svc: CheckInService = Depends(check_in_service)):
        res = svc.add(form)
        _fail(res.error)
        return CheckInSaved(xp_gained=res.xp_gained, created=res.created,
                            check_in=_check_in_out(svc.today_check_in()))

    @app.get("/check-ins/today", response_model=Optional[CheckInOut])
    def today_check_in(svc: CheckInService = Depends(check_in_service)):
        _fail(svc.error)
        return _check_in_out(svc.today_check_in())

    @app.get("/check-ins/summary", response_model=CheckInSummary)
    def check_in_summary(limit: int = Query(default=7, ge=1, le=30), svc: CheckInService = Depends(check_in_service)):
        _fail(svc.error)
        return CheckInSummary(
            has_today=svc.has_today(), missed_days=svc.missed_days(),
            today=_check_in_out(svc.today_check_in()), last=_check_in_out(svc.last()),
            recent=[_check_in_out(ci) for ci in svc.recent(limit)],
        )

    @app.get("/dashboard", response_model=DashboardOut)
    def dashboard(chapters: ChapterService = Depends(chapter_service),
                  check_ins: CheckInService = Depends(check_in_service)):
        profile = check_ins.profiles.fetch()
        _fail(check_ins.profiles.error, chapters.error or check_ins.error)
        return DashboardOut(
            profile=_profile_out(profile),
            active_chapter=_chapter_out(chapters, chapters.active),
            has_checked_in_today=check_ins.has_today(),
            missed_days=check_ins.missed_days(),
            recent_check_ins=[_check_in_out(ci) for ci in check_ins.recent(5)],
        )

    # Coach
    @app.post("/coach/chat", response_model=ChatReply)
    def coach_chat(req: ChatRequest, request: Request, chapters: ChapterService = Depends(chapter_service),
                   check_ins: CheckInService = Depends(check_in_service)):
        coach: Coach = request.app.state.coach
        profile = check_ins.profiles.fetch()
        try:
            reply = coach.send([m.model_dump() for m in req.messages], profile, chapters.active, check_ins.check_ins,
                               today=chapters.today())
        except TRANSPORT_ERRORS as e:
            logger.error("Coach request failed: %s", e)
            reply = APOLOGY_MESSAGE
        return ChatReply(reply=reply, configured=coach.configured)

    # Maintenance (console equivalent of gymbro-seed)
    def _dev_tools(cfg: Config = Depends(get_config)):
        if not cfg.DEV_TOOLS:
            raise HTTPException(404, "Not found")

    @app.post("/dev/wipe", response_model=SeedOut, dependencies=[Depends(_dev_tools)])
    def dev_wipe(user: UserOut = Depends(get_user), gateway=Depends(get_gateway)):
        res = seed.wipe(gateway, user.id)
        return SeedOut(ok=res.ok, message=res.message)

    @app.post("/dev/seed", response_model=SeedOut, dependencies=[Depends(_dev_tools)])
    def dev_seed(user: UserOut = Depends(get_user), gateway=Depends(get_gateway)):
        res = seed.seed(gateway, user.id)
        return SeedOut(ok=res.ok, message=res.message)


app = create_app()
