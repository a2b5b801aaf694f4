from dataclasses import dataclass
from datetime import date
from typing import Optional, Callable, Awaitable
import asyncio
import math
import random

from .domain import PRODUCT_STATUSES, Product
from .ftypes import Either
from .transient import UploadProgress, simulate_upload


@dataclass(frozen=True)
class ProductForm:
    """Сырые значения формы товара (как их ввёл пользователь)"""

    name: str = ""
    category: str = ""
    price: str = ""
    stock: str = ""
    status: str = "draft"

    @staticmethod
    def from_product(product: Product) -> "ProductForm":
        # цена хранится в основных единицах, поэтому без деления на 100
        return ProductForm(
            name=product.name,
            category=product.category,
            price=f"{product.price:g}",
            stock=str(product.stock),
            status=product.status,
        )


def validate_product_form(
    form: ProductForm,
    images: int = 0,
    reels: int = 0,
    created_at: Optional[str] = None,
) -> Either[dict, dict]:
    """
    Проверяет форму → Either[ошибки по полям, черновик товара]
    Черновик - dict с полями Product без id.
    """
    errors = {}
    if not form.name.strip():
        errors["name"] = "Name is required"
    if not form.category.strip():
        errors["category"] = "Category is required"

    try:
        price = float(form.price)
        if not math.isfinite(price):
            errors["price"] = "Price must be a number"
        elif price < 0:
            errors["price"] = "Price must be non-negative"
    except ValueError:
        errors["price"] = "Price must be a number"

    try:
        stock = int(form.stock)
        if stock < 0:
            errors["stock"] = "Stock must be non-negative"
    except ValueError:
        errors["stock"] = "Stock must be a whole number"

    if form.status not in PRODUCT_STATUSES:
        errors["status"] = f"Status must be one of {PRODUCT_STATUSES}"

    if errors:
        return Either.left(errors)

    return Either.right(
        {
            "name": form.name.strip(),
            "category": form.category.strip(),
            "price": price,
            "stock": stock,
            "status": form.status,
            "images": images,
            "reels": reels,
            "created_at": created_at or date.today().isoformat(),
        }
    )


async def submit_product_form(
    form: ProductForm,
    hook,
    progress: UploadProgress,
    editing: Optional[Product] = None,
    images: Optional[int] = None,
    reels: Optional[int] = None,
    rng: Callable[[], float] = random.random,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    on_progress: Optional[Callable[[float], None]] = None,
):
    """
    Отправка формы: проверка, имитация загрузки, затем create или update.
    Возвращает Either хука (или Left с ошибками формы).
    """
    # при редактировании без новых файлов счётчики сохраняются
    if images is None:
        images = editing.images if editing else 0
    if reels is None:
        reels = editing.reels if editing else 0

    draft = validate_product_form(
        form,
        images=images,
        reels=reels,
        created_at=editing.created_at if editing else None,
    )
    if draft.is_left:
        return draft

    try:
        await simulate_upload(progress, rng=rng, sleep=sleep, on_progress=on_progress)
        if editing is not None:
            changes = {k: v for k, v in draft.value.items() if k != "created_at"}
            return await hook.update(editing.id, changes)
        return await hook.create(draft.value)
    finally:
        progress.reset()
