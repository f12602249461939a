from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import CORS_ORIGINS
from luco.server import dependencies
from luco.server.routers.assistant_routes import assistant_router
from luco.server.routers.auth_routes import auth_router
from luco.server.routers.banner_routes import banner_router
from luco.server.routers.member_routes import member_router
from luco.server.routers.payment_routes import payment_router
from luco.server.routers.purchase_routes import purchase_router
from luco.server.routers.subscriber_routes import subscriber_router
from luco.server.routers.voucher_profile_routes import voucher_profile_router
from luco.server.routers.voucher_routes import voucher_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Stop polling for flows still waiting on the provider
    dependencies.shutdown()


app = FastAPI(title="Luco Vouchers", lifespan=lifespan)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["root"])
def root():
    return {"message": "success"}


# Include the routers in the main app with a prefix
app.include_router(auth_router, prefix="/auth", tags=["auth"])
app.include_router(voucher_router, prefix="/vouchers", tags=["vouchers"])
app.include_router(
    voucher_profile_router, prefix="/voucher-profiles", tags=["voucher-profiles"]
)
app.include_router(purchase_router, prefix="/purchase", tags=["purchase"])
app.include_router(payment_router, prefix="/payments", tags=["payments"])
app.include_router(member_router, prefix="/members", tags=["members"])
app.include_router(subscriber_router, prefix="/subscribers", tags=["subscribers"])
app.include_router(banner_router, prefix="/banners", tags=["banners"])
app.include_router(assistant_router, prefix="/assistant", tags=["assistant"])

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8080)
