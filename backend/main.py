import logging
from datetime import datetime
from typing import List

import uvicorn
from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

import auth
import inventory
import models
import orders
from config import CORS_ORIGINS, LOG_LEVEL
from database import get_db, init_db, wait_for_db
from errors import InternalError, ServiceError
from redis_client import redis_client
from schemas import (
    EmployeeCreate,
    EmployeeResponse,
    InventoryItemCreate,
    InventoryItemResponse,
    MenuItemCreate,
    MenuItemResponse,
    OrderCreate,
    OrderResponse,
    OrderStatusUpdate,
    SalesStats,
    UserLogin,
)
from store import RecordStore

logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)


app = FastAPI(title="Outlet POS API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def startup_event():
    if wait_for_db():
        logger.info("Creating database tables...")
        init_db()
        logger.info("Database initialised")
    else:
        logger.error("Database not ready at startup")

    if redis_client.is_available():
        logger.info("Redis available")
    else:
        logger.warning("Redis unavailable, caching disabled")


# ========== Errors ==========

@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if isinstance(exc, InternalError):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    messages = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        message = str(error.get("msg", "Invalid value")).replace("Value error, ", "")
        messages.append(f"{field}: {message}" if field else message)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": "; ".join(messages)})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": "Internal server error"})


# ========== Stores ==========

def menu_store(db: Session = Depends(get_db)) -> RecordStore:
    return RecordStore(db, models.MenuItem, "Menu item")


def employee_store(db: Session = Depends(get_db)) -> RecordStore:
    return RecordStore(db, models.Employee, "Employee", "Employee with this national ID already exists")


def inventory_store(db: Session = Depends(get_db)) -> RecordStore:
    return RecordStore(db, models.InventoryItem, "Inventory item")


# ========== Service ==========

@app.get("/api/health")
def health_check():
    return {
        "status": "OK",
        "message": "Outlet POS API is running",
        "timestamp": datetime.now().isoformat(),
    }


@app.get("/api/cache/info")
def get_cache_info():
    return redis_client.get_cache_info()


# ========== Auth ==========

@app.post("/api/auth/login")
def login(credentials: UserLogin, verifier: auth.CredentialVerifier = Depends(auth.get_verifier)):
    if not credentials.username or not credentials.password:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "message": "Username and password are required"},
        )

    user = verifier.authenticate(credentials.username, credentials.password)
    if not user:
        logger.info("Failed login for %s", credentials.username)
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"success": False, "message": "Invalid credentials"},
        )

    return {"success": True, "message": "Login successful", "user": user}


@app.get("/api/auth/check")
def check_auth(verifier: auth.CredentialVerifier = Depends(auth.get_verifier)):
    return {"logged_in": True, "user": verifier.current_user()}


@app.post("/api/auth/logout")
def logout():
    return {"success": True, "message": "Logout successful"}


# ========== Menu ==========

@app.get("/api/menu", response_model=List[MenuItemResponse])
def get_menu_items(store: RecordStore = Depends(menu_store)):
    cached_menu = redis_client.get_cached_menu()
    if cached_menu is not None:
        return cached_menu

    items = [orders.menu_item_response(item) for item in store.find_all(is_active=True)]
    redis_client.cache_menu(items)
    return items


@app.get("/api/menu/{item_id}", response_model=MenuItemResponse)
def get_menu_item(item_id: int, store: RecordStore = Depends(menu_store)):
    return orders.menu_item_response(store.get(item_id))


@app.post("/api/menu", response_model=MenuItemResponse, status_code=status.HTTP_201_CREATED)
def create_menu_item(item: MenuItemCreate, store: RecordStore = Depends(menu_store)):
    db_item = store.insert(item.dict())
    redis_client.invalidate_menu_cache()
    logger.info("Menu item %s created", db_item.id)
    return orders.menu_item_response(db_item)


@app.put("/api/menu/{item_id}", response_model=MenuItemResponse)
def update_menu_item(item_id: int, item: MenuItemCreate, store: RecordStore = Depends(menu_store)):
    db_item = store.update(item_id, item.dict())
    redis_client.invalidate_menu_cache()
    redis_client.invalidate_all_orders_cache()
    return orders.menu_item_response(db_item)


@app.delete("/api/menu/{item_id}")
def delete_menu_item(item_id: int, store: RecordStore = Depends(menu_store)):
    store.update(item_id, {"is_active": False})
    redis_client.invalidate_menu_cache()
    redis_client.invalidate_all_orders_cache()
    return {"message": "Menu item deleted"}


# ========== Orders ==========

@app.post("/api/orders", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def create_order(order: OrderCreate, db: Session = Depends(get_db)):
    cart = orders.Cart.from_items(order.items)
    db_order = orders.create_order(
        db,
        customer_name=order.customer_name,
        customer_phone=order.customer_phone,
        customer_address=order.customer_address,
        cart=cart,
        tax_rate=order.tax,
        discount=order.discount,
    )
    response = orders.order_response(db, db_order)
    redis_client.cache_order(db_order.id, response)
    return response


@app.get("/api/orders", response_model=List[OrderResponse])
def get_orders(db: Session = Depends(get_db)):
    return [orders.order_response(db, order) for order in orders.list_orders(db)]


@app.get("/api/orders/stats", response_model=SalesStats)
def get_sales_stats(db: Session = Depends(get_db)):
    stats = orders.get_stats(db)
    return {
        "today_revenue": float(stats["today_revenue"]),
        "today_orders": stats["today_orders"],
        "total_orders": stats["total_orders"],
        "total_revenue": float(stats["total_revenue"]),
    }


@app.get("/api/orders/{order_id}", response_model=OrderResponse)
def get_order(order_id: int, db: Session = Depends(get_db)):
    cached_order = redis_client.get_cached_order(order_id)
    if cached_order is not None:
        return cached_order

    response = orders.order_response(db, orders.get_order(db, order_id))
    redis_client.cache_order(order_id, response)
    return response


@app.put("/api/orders/{order_id}/status", response_model=OrderResponse)
def update_order_status(order_id: int, update: OrderStatusUpdate, db: Session = Depends(get_db)):
    db_order = orders.set_status(db, order_id, update.status)
    redis_client.invalidate_order_cache(order_id)
    return orders.order_response(db, db_order)


# ========== Employees ==========

@app.get("/api/employees", response_model=List[EmployeeResponse])
def get_employees(store: RecordStore = Depends(employee_store)):
    return [employee_response(employee) for employee in store.find_all()]


@app.get("/api/employees/{employee_id}", response_model=EmployeeResponse)
def get_employee(employee_id: int, store: RecordStore = Depends(employee_store)):
    return employee_response(store.get(employee_id))


@app.post("/api/employees", response_model=EmployeeResponse, status_code=status.HTTP_201_CREATED)
def create_employee(employee: EmployeeCreate, store: RecordStore = Depends(employee_store)):
    return employee_response(store.insert(employee.dict()))


@app.put("/api/employees/{employee_id}", response_model=EmployeeResponse)
def update_employee(employee_id: int, employee: EmployeeCreate, store: RecordStore = Depends(employee_store)):
    return employee_response(store.update(employee_id, employee.dict()))


@app.delete("/api/employees/{employee_id}")
def delete_employee(employee_id: int, store: RecordStore = Depends(employee_store)):
    store.delete(employee_id)
    return {"message": "Employee deleted"}


def employee_response(employee: models.Employee) -> dict:
    return {
        "id": employee.id,
        "name": employee.name,
        "national_id": employee.national_id,
        "phone": employee.phone,
        "joining_date": employee.joining_date,
        "status": employee.status,
        "created_at": employee.created_at,
    }


# ========== Inventory ==========

@app.get("/api/inventory", response_model=List[InventoryItemResponse])
def get_inventory_items(store: RecordStore = Depends(inventory_store)):
    return [inventory.inventory_item_response(item) for item in store.find_all()]


@app.get("/api/inventory/expired", response_model=List[InventoryItemResponse])
def get_expired_items(db: Session = Depends(get_db)):
    return [inventory.inventory_item_response(item) for item in inventory.get_expired_items(db)]


@app.get("/api/inventory/{item_id}", response_model=InventoryItemResponse)
def get_inventory_item(item_id: int, store: RecordStore = Depends(inventory_store)):
    return inventory.inventory_item_response(store.get(item_id))


@app.post("/api/inventory", response_model=InventoryItemResponse, status_code=status.HTTP_201_CREATED)
def create_inventory_item(item: InventoryItemCreate, store: RecordStore = Depends(inventory_store)):
    db_item = store.insert(inventory.normalize_expiry(item.dict()))
    return inventory.inventory_item_response(db_item)


@app.put("/api/inventory/{item_id}", response_model=InventoryItemResponse)
def update_inventory_item(item_id: int, item: InventoryItemCreate, store: RecordStore = Depends(inventory_store)):
    db_item = store.update(item_id, inventory.normalize_expiry(item.dict()))
    return inventory.inventory_item_response(db_item)


@app.delete("/api/inventory/{item_id}")
def delete_inventory_item(item_id: int, store: RecordStore = Depends(inventory_store)):
    store.delete(item_id)
    return {"message": "Inventory item deleted"}


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
