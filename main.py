import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.responses import FileResponse, JSONResponse, Response
from starlette.convertors import Convertor, register_url_convertor
from starlette.exceptions import HTTPException as StarletteHTTPException

import controllers
from auth import (
    configure_hashing,
    current_user,
    guards,
    json_body,
    reject_self_target,
    require_admin,
    require_customer,
    require_json,
)
from controllers import ValidationFailed
from database import Database, get_database
from settings import Settings

logger = logging.getLogger(__name__)


# ----------------------- Routing table -----------------------
class ObjectIdConvertor(Convertor):
    regex = "[0-9a-z]{8,24}"

    def convert(self, value: str) -> str:
        return value

    def to_string(self, value: str) -> str:
        return value


register_url_convertor("objectid", ObjectIdConvertor())

HTTP_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

# Known collection routes and their allowed methods. Also the value of
# Access-Control-Allow-Methods in OPTIONS responses.
ALLOWED_METHODS = {
    "/api/register": ["POST"],
    "/api/users": ["GET"],
    "/api/products": ["GET", "POST"],
    "/api/orders": ["GET", "POST"],
}

router = APIRouter()


def other_methods(*allowed: str):
    return [m for m in HTTP_METHODS if m not in allowed]


def method_not_allowed():
    raise HTTPException(status_code=405, detail="Method not allowed")


def send_options(path: str) -> Response:
    return Response(
        status_code=204,
        headers={
            "Access-Control-Allow-Methods": ",".join(ALLOWED_METHODS[path]),
            "Access-Control-Allow-Headers": "Content-Type,Accept",
            "Access-Control-Max-Age": "86400",
            "Access-Control-Expose-Headers": "Content-Type,Accept",
        },
    )


# ----------------------- Users by id -----------------------
USER_GUARDS = guards(current_user, require_admin, require_json)


@router.get("/api/users/{user_id:objectid}", dependencies=USER_GUARDS)
def view_user(user_id: str, database: Database = Depends(get_database)):
    return controllers.view_user(database, user_id)


@router.put("/api/users/{user_id:objectid}", dependencies=USER_GUARDS + guards(reject_self_target))
def update_user(user_id: str, body: dict = Depends(json_body), database: Database = Depends(get_database)):
    return controllers.update_user(database, user_id, body)


@router.delete("/api/users/{user_id:objectid}", dependencies=USER_GUARDS + guards(reject_self_target))
def delete_user(user_id: str, database: Database = Depends(get_database)):
    return controllers.delete_user(database, user_id)


@router.api_route("/api/users/{user_id:objectid}", methods=other_methods("GET", "PUT", "DELETE"),
                  dependencies=USER_GUARDS, include_in_schema=False)
def user_method_not_allowed(user_id: str):
    method_not_allowed()


# ----------------------- Products by id -----------------------
PRODUCT_GUARDS = guards(current_user, require_json)


@router.get("/api/products/{product_id:objectid}", dependencies=PRODUCT_GUARDS)
def view_product(product_id: str, database: Database = Depends(get_database)):
    return controllers.view_product(database, product_id)


@router.put("/api/products/{product_id:objectid}", dependencies=PRODUCT_GUARDS + guards(require_admin))
def update_product(product_id: str, body: dict = Depends(json_body), database: Database = Depends(get_database)):
    return controllers.update_product(database, product_id, body)


@router.delete("/api/products/{product_id:objectid}", dependencies=PRODUCT_GUARDS + guards(require_admin))
def delete_product(product_id: str, database: Database = Depends(get_database)):
    return controllers.delete_product(database, product_id)


@router.api_route("/api/products/{product_id:objectid}", methods=other_methods("GET", "PUT", "DELETE"),
                  dependencies=PRODUCT_GUARDS + guards(require_admin), include_in_schema=False)
def product_method_not_allowed(product_id: str):
    method_not_allowed()


# ----------------------- Orders by id -----------------------
ORDER_GUARDS = guards(current_user, require_json)


@router.get("/api/orders/{order_id:objectid}", dependencies=ORDER_GUARDS)
def view_order(order_id: str, user: dict = Depends(current_user), database: Database = Depends(get_database)):
    if user["role"] == "admin":
        return controllers.view_order(database, order_id)
    return controllers.view_own_order(database, order_id, user["id"])


@router.api_route("/api/orders/{order_id:objectid}", methods=other_methods("GET"),
                  dependencies=ORDER_GUARDS, include_in_schema=False)
def order_method_not_allowed(order_id: str):
    method_not_allowed()


# ----------------------- Collections -----------------------
@router.post("/api/register", status_code=201, dependencies=guards(require_json))
def register(body: dict = Depends(json_body), database: Database = Depends(get_database)):
    return controllers.register_user(database, body)


@router.get("/api/users", dependencies=guards(require_json, current_user, require_admin))
def list_users(database: Database = Depends(get_database)):
    return controllers.list_users(database)


@router.get("/api/products", dependencies=guards(require_json, current_user))
def list_products(database: Database = Depends(get_database)):
    return controllers.list_products(database)


@router.post("/api/products", status_code=201, dependencies=guards(require_json, current_user, require_admin))
def create_product(body: dict = Depends(json_body), database: Database = Depends(get_database)):
    return controllers.register_product(database, body)


@router.get("/api/orders", dependencies=guards(require_json))
def list_orders(user: dict = Depends(current_user), database: Database = Depends(get_database)):
    if user["role"] == "admin":
        return controllers.list_orders(database)
    return controllers.list_own_orders(database, user["id"])


@router.post("/api/orders", status_code=201, dependencies=guards(require_json, current_user, require_customer))
def create_order(user: dict = Depends(current_user), body: dict = Depends(json_body),
                 database: Database = Depends(get_database)):
    return controllers.register_order(database, body, user["id"])


def _collection_fallback(path: str):
    # OPTIONS answers before any other check; the rest need JSON and end in 405
    def handler(request: Request):
        if request.method == "OPTIONS":
            return send_options(path)
        require_json(request)
        method_not_allowed()

    return handler


for _path, _allowed in ALLOWED_METHODS.items():
    router.add_api_route(_path, _collection_fallback(_path), methods=other_methods(*_allowed),
                         include_in_schema=False)


# ----------------------- Static files -----------------------
def render_public(public_dir: str, path: str) -> FileResponse:
    root = Path(public_dir).resolve()
    file_name = "index.html" if path in ("", "/") else path.lstrip("/")
    try:
        target = (root / file_name).resolve()
        found = root in target.parents and target.is_file()
    except (ValueError, OSError):
        found = False
    if not found:
        raise HTTPException(status_code=404, detail="Not found")
    return FileResponse(target)


class PublicFiles:
    """Last route: serves non-API GETs from the public directory, 404 for the rest.

    A plain ASGI endpoint so the route accepts every method, including ones
    no other route knows about.
    """

    async def __call__(self, scope, receive, send):
        request = Request(scope, receive)
        path = request.url.path
        if request.method != "GET" or path.startswith("/api"):
            raise HTTPException(status_code=404, detail="Not found")
        response = render_public(request.app.state.settings.public_dir, path)
        await response(scope, receive, send)


# ----------------------- Error responses -----------------------
async def http_error(request: Request, exc: StarletteHTTPException):
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=getattr(exc, "headers", None))


async def validation_failed(request: Request, exc: ValidationFailed):
    return JSONResponse({"error": "Validation error", "details": exc.details}, status_code=400)


# ----------------------- App -----------------------
def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    database = database or Database(settings.database_url, settings.database_name)
    configure_hashing(settings.bcrypt_rounds)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        database.disconnect()

    app = FastAPI(title="Web Shop API", lifespan=lifespan, docs_url=None, redoc_url=None, openapi_url=None)
    app.state.settings = settings
    app.state.database = database
    app.add_exception_handler(StarletteHTTPException, http_error)
    app.add_exception_handler(ValidationFailed, validation_failed)
    app.include_router(router)
    app.add_route("/{path:path}", PublicFiles(), include_in_schema=False)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    settings = app.state.settings
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(app, host=settings.host, port=settings.port)
