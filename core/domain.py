from dataclasses import dataclass, field
from typing import Optional, Tuple, Dict, Any


PRODUCT_STATUSES = ("active", "draft", "out-of-stock")
VIDEO_TYPES = ("video", "reel")
VIDEO_STATUSES = ("published", "draft", "processing")
ORDER_STATUSES = ("pending", "shipped", "delivered", "returned", "cancelled")

# поля, которые клиент не передаёт при создании
SERVER_FIELDS = ("id", "backend_id", "created_at")


def _require(value: str, allowed: Tuple[str, ...], what: str) -> None:
    if value not in allowed:
        raise ValueError(f"Unknown {what} '{value}', expected one of {allowed}")


def _non_negative(entity: Any, *names: str) -> None:
    for name in names:
        value = getattr(entity, name)
        if value < 0:
            raise ValueError(f"{name} must be non-negative, got {value}")


def to_wire_key(name: str) -> str:
    """snake_case -> camelCase, backend_id -> _id"""
    if name == "backend_id":
        return "_id"
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def to_wire(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {to_wire_key(k): v for k, v in fields.items()}


def _compact(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    category: str
    price: float  # в основных единицах валюты, не в центах
    stock: int
    status: str  # "active" | "draft" | "out-of-stock"
    images: int = 0
    reels: int = 0
    created_at: str = ""
    backend_id: Optional[str] = None
    updated_at: Optional[str] = None

    def __post_init__(self):
        # статус не выводится из stock: stock == 0 не делает товар out-of-stock
        _require(self.status, PRODUCT_STATUSES, "product status")
        _non_negative(self, "stock", "images", "reels")

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Product":
        """Собирает Product из JSON бэкенда (camelCase)"""
        return Product(
            id=str(data.get("id") or data.get("_id") or ""),
            name=str(data.get("name", "")),
            category=str(data.get("category", "")),
            price=float(data.get("price", 0)),
            stock=int(data.get("stock", 0)),
            status=str(data.get("status", "draft")),
            images=int(data.get("images", 0)),
            reels=int(data.get("reels", 0)),
            created_at=str(data.get("createdAt", "")),
            backend_id=data.get("_id"),
            updated_at=data.get("updatedAt"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return _compact(
            {
                "id": self.id,
                "name": self.name,
                "category": self.category,
                "price": self.price,
                "stock": self.stock,
                "status": self.status,
                "images": self.images,
                "reels": self.reels,
                "createdAt": self.created_at,
                "_id": self.backend_id,
                "updatedAt": self.updated_at,
            }
        )


@dataclass(frozen=True)
class VideoContent:
    id: str
    title: str
    type: str  # "video" | "reel"
    thumbnail: str
    duration: int  # секунды
    views: int
    likes: int
    comments: int
    shares: int
    reach: int
    upload_date: str
    status: str  # "published" | "draft" | "processing"
    product_id: str  # слабая ссылка на Product, каскадного удаления нет
    backend_id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def __post_init__(self):
        _require(self.type, VIDEO_TYPES, "video type")
        _require(self.status, VIDEO_STATUSES, "video status")
        _non_negative(
            self, "duration", "views", "likes", "comments", "shares", "reach"
        )

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "VideoContent":
        return VideoContent(
            id=str(data.get("id") or data.get("_id") or ""),
            title=str(data.get("title", "")),
            type=str(data.get("type", "video")),
            thumbnail=str(data.get("thumbnail", "")),
            duration=int(data.get("duration", 0)),
            views=int(data.get("views", 0)),
            likes=int(data.get("likes", 0)),
            comments=int(data.get("comments", 0)),
            shares=int(data.get("shares", 0)),
            reach=int(data.get("reach", 0)),
            upload_date=str(data.get("uploadDate", "")),
            status=str(data.get("status", "draft")),
            product_id=str(data.get("productId", "")),
            backend_id=data.get("_id"),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return _compact(
            {
                "id": self.id,
                "title": self.title,
                "type": self.type,
                "thumbnail": self.thumbnail,
                "duration": self.duration,
                "views": self.views,
                "likes": self.likes,
                "comments": self.comments,
                "shares": self.shares,
                "reach": self.reach,
                "uploadDate": self.upload_date,
                "status": self.status,
                "productId": self.product_id,
                "_id": self.backend_id,
                "createdAt": self.created_at,
                "updatedAt": self.updated_at,
            }
        )


@dataclass(frozen=True)
class Order:
    id: str
    product_name: str  # денормализованная копия, не живая ссылка
    customer_name: str
    status: str  # "pending" | "shipped" | "delivered" | "returned" | "cancelled"
    date: str
    amount: float
    quantity: int
    product_id: Optional[str] = None
    customer_email: Optional[str] = None
    backend_id: Optional[str] = None

    def __post_init__(self):
        _require(self.status, ORDER_STATUSES, "order status")
        if self.quantity <= 0:
            raise ValueError(f"quantity must be positive, got {self.quantity}")

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Order":
        return Order(
            id=str(data.get("id") or data.get("_id") or ""),
            product_name=str(data.get("productName", "")),
            customer_name=str(data.get("customerName", "")),
            status=str(data.get("status", "pending")),
            date=str(data.get("date", "")),
            amount=float(data.get("amount", 0)),
            quantity=int(data.get("quantity", 1)),
            product_id=data.get("productId"),
            customer_email=data.get("customerEmail"),
            backend_id=data.get("_id"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return _compact(
            {
                "id": self.id,
                "productName": self.product_name,
                "customerName": self.customer_name,
                "status": self.status,
                "date": self.date,
                "amount": self.amount,
                "quantity": self.quantity,
                "productId": self.product_id,
                "customerEmail": self.customer_email,
                "_id": self.backend_id,
            }
        )


@dataclass(frozen=True)
class IncomePoint:
    month: str
    income: float
    commission: float


@dataclass(frozen=True)
class MoneyData:
    total_income: float
    commission: float
    pending_payout: float
    income_history: Tuple[IncomePoint, ...] = ()

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "MoneyData":
        history = tuple(
            IncomePoint(
                month=str(p.get("month", "")),
                income=float(p.get("income", 0)),
                commission=float(p.get("commission", 0)),
            )
            for p in data.get("incomeHistory", [])
        )
        return MoneyData(
            total_income=float(data.get("totalIncome", 0)),
            commission=float(data.get("commission", 0)),
            pending_payout=float(data.get("pendingPayout", 0)),
            income_history=history,
        )


@dataclass(frozen=True)
class SocialMetrics:
    followers: int
    total_views: int
    total_likes: int
    total_shares: int
    total_reach: int
    engagement_rate: float
    top_performing_content: Tuple[VideoContent, ...] = ()

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "SocialMetrics":
        return SocialMetrics(
            followers=int(data.get("followers", 0)),
            total_views=int(data.get("totalViews", 0)),
            total_likes=int(data.get("totalLikes", 0)),
            total_shares=int(data.get("totalShares", 0)),
            total_reach=int(data.get("totalReach", 0)),
            engagement_rate=float(data.get("engagementRate", 0)),
            top_performing_content=tuple(
                map(VideoContent.from_dict, data.get("topPerformingContent", []))
            ),
        )


@dataclass(frozen=True)
class Notification:
    title: str
    description: str
    variant: Optional[str] = None  # "destructive" для удалений и ошибок


@dataclass(frozen=True)
class Event:
    id: str
    ts: str
    name: str
    payload: Dict = field(default_factory=dict)
