import sys
import os
import streamlit as st

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from core.config import configure_logging
from core.service import SellerDashboard
from core.async_ops import run_async
from core.forms import ProductForm, submit_product_form
from core.domain import PRODUCT_STATUSES, ORDER_STATUSES
from core.transient import UploadProgress
from core.transforms import (
    apply_filters,
    by_search,
    by_status,
    format_currency,
    format_duration,
    format_number,
)
from Analytics_Service.report import (
    content_stats,
    low_stock_products,
    money_summary,
    order_stats,
    product_stats,
    sales_by_category,
    top_products,
)


configure_logging()


def show_toast(notification):
    icon = "🗑️" if notification.variant == "destructive" else "✅"
    st.toast(f"**{notification.title}** — {notification.description}", icon=icon)


# ============ Инициализация ============
st.set_page_config(
    page_title="Seller Dashboard",
    page_icon="🛍️",
    layout="wide",
    initial_sidebar_state="expanded",
)

if "dashboard" not in st.session_state:
    st.session_state.dashboard = SellerDashboard(notification_sink=show_toast)
    st.session_state.load_result = run_async(st.session_state.dashboard.load())

if "upload" not in st.session_state:
    st.session_state.upload = UploadProgress()

dashboard: SellerDashboard = st.session_state.dashboard
products = dashboard.products.items
videos = dashboard.videos.items
orders = dashboard.orders.items


# ============ SIDEBAR - Навигация ============
with st.sidebar:
    st.header("🛍️ Seller Dashboard")
    page = st.radio(
        "Раздел:",
        ["📦 Каталог", "🧾 Заказы", "💰 Финансы", "📈 Аналитика", "🕑 Активность"],
        label_visibility="collapsed",
    )
    st.divider()
    sources = st.session_state.load_result["sources"]
    for name, source in sources.items():
        badge = {"remote": "🟢", "local": "🟡"}.get(source, "🔴")
        st.caption(f"{badge} {name}: {source}")
    if st.button("🔄 Обновить данные"):
        st.session_state.load_result = run_async(dashboard.load())
        st.rerun()


# ============ PAGE: КАТАЛОГ ============
if page == "📦 Каталог":
    st.header("📦 Content & Catalog")

    if dashboard.products.error:
        st.error(dashboard.products.error)

    stats = product_stats(products)
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Всего товаров", stats["total"])
    col2.metric("Активные", stats["active"])
    col3.metric("Мало на складе", stats["low_stock"])
    col4.metric("Нет в наличии", stats["out_of_stock"])

    st.divider()

    with st.expander("➕ Добавить товар"):
        with st.form("add_product"):
            name = st.text_input("Название")
            category = st.text_input("Категория")
            price = st.text_input("Цена", "0")
            stock = st.text_input("Остаток", "0")
            status = st.selectbox("Статус", PRODUCT_STATUSES, index=1)
            images = st.number_input("Изображения", min_value=0, value=0)
            reels = st.number_input("Reels", min_value=0, value=0)
            submitted = st.form_submit_button("Сохранить")

        if submitted:
            bar = st.progress(0, text="Загрузка...")
            result = run_async(
                submit_product_form(
                    ProductForm(name, category, price, stock, status),
                    dashboard.products,
                    st.session_state.upload,
                    images=int(images),
                    reels=int(reels),
                    on_progress=lambda pct: bar.progress(int(pct), text=f"{pct:.0f}%"),
                )
            )
            if result.is_left and isinstance(result.value, dict):
                for field, message in result.value.items():
                    st.error(f"{field}: {message}")
            else:
                st.rerun()

    col1, col2 = st.columns([3, 1])
    with col1:
        term = st.text_input("🔍 Поиск", key="catalog_search")
    with col2:
        status_filter = st.selectbox("Статус", ["Все", *PRODUCT_STATUSES], key="catalog_status")

    predicates = []
    if term:
        predicates.append(by_search(term))
    if status_filter != "Все":
        predicates.append(by_status(status_filter))
    filtered = apply_filters(products, *predicates)

    recent = dashboard.products.recently_added.value
    for p in filtered:
        with st.container():
            cols = st.columns([5, 2, 2, 2, 1, 1])
            with cols[0]:
                marker = " 🆕" if p.id == recent else ""
                st.markdown(f"**{p.name}**{marker}")
                st.caption(f"{p.category} · 🖼️ {p.images} · 🎬 {p.reels}")
            cols[1].write(format_currency(p.price))
            cols[2].write(f"Остаток: {p.stock}")
            cols[3].write(p.status)
            with cols[4]:
                if st.button("✏️", key=f"edit_{p.id}"):
                    st.session_state.editing = p.id
            with cols[5]:
                if st.button("🗑️", key=f"del_{p.id}"):
                    run_async(dashboard.products.delete(p.id))
                    st.rerun()

            if st.session_state.get("editing") == p.id:
                current = ProductForm.from_product(p)
                with st.form(f"edit_{p.id}_form"):
                    name = st.text_input("Название", current.name)
                    category = st.text_input("Категория", current.category)
                    price = st.text_input("Цена", current.price)
                    stock = st.text_input("Остаток", current.stock)
                    status = st.selectbox(
                        "Статус", PRODUCT_STATUSES, index=PRODUCT_STATUSES.index(current.status)
                    )
                    saved = st.form_submit_button("Сохранить изменения")
                    cancelled = st.form_submit_button("Отмена")

                if cancelled:
                    st.session_state.editing = None
                    st.rerun()
                if saved:
                    result = run_async(
                        submit_product_form(
                            ProductForm(name, category, price, stock, status),
                            dashboard.products,
                            st.session_state.upload,
                            editing=p,
                        )
                    )
                    if result.is_left and isinstance(result.value, dict):
                        for field, message in result.value.items():
                            st.error(f"{field}: {message}")
                    else:
                        st.session_state.editing = None
                        st.rerun()

            own = dashboard.videos.videos_by_product(p.id)
            if own:
                with st.expander(f"🎬 Видео ({len(own)})"):
                    for v in own:
                        vcols = st.columns([8, 1])
                        vcols[0].write(
                            f"{v.title} · {v.type} · {format_duration(v.duration)} · "
                            f"👁️ {format_number(v.views)}"
                        )
                        if vcols[1].button("🗑️", key=f"del_video_{v.id}"):
                            run_async(dashboard.videos.delete(v.id))
                            st.rerun()
            st.divider()


# ============ PAGE: ЗАКАЗЫ ============
elif page == "🧾 Заказы":
    st.header("🧾 Orders Management")

    stats = order_stats(orders)
    cols = st.columns(5)
    cols[0].metric("Всего", stats["total"])
    cols[1].metric("Pending", stats["pending"])
    cols[2].metric("Shipped", stats["shipped"])
    cols[3].metric("Delivered", stats["delivered"])
    cols[4].metric("Выручка", format_currency(stats["total_revenue"]))

    st.divider()

    for o in orders:
        cols = st.columns([2, 4, 3, 2, 3, 1])
        cols[0].write(o.id)
        cols[1].write(f"{o.product_name} × {o.quantity}")
        cols[2].write(o.customer_name)
        cols[3].write(format_currency(o.amount))
        with cols[4]:
            new_status = st.selectbox(
                "Статус",
                ORDER_STATUSES,
                index=ORDER_STATUSES.index(o.status),
                key=f"status_{o.id}",
                label_visibility="collapsed",
            )
            if new_status != o.status:
                run_async(dashboard.orders.update_status(o.id, new_status))
                st.rerun()
        with cols[5]:
            if o.status not in ("cancelled", "delivered") and st.button("❌", key=f"cancel_{o.id}"):
                run_async(dashboard.orders.cancel(o.id))
                st.rerun()


# ============ PAGE: ФИНАНСЫ ============
elif page == "💰 Финансы":
    st.header("💰 Financial Overview")

    money = dashboard.finance.money
    if money is None:
        st.warning("Финансовые данные недоступны")
    else:
        summary = money_summary(money)
        col1, col2, col3 = st.columns(3)
        col1.metric("Total Income", format_currency(summary["total_income"]))
        col2.metric(
            f"Commission ({summary['commission_rate']:.0f}%)",
            format_currency(summary["commission"]),
        )
        col3.metric("Pending Payout", format_currency(summary["pending_payout"]))

        st.subheader("📈 Доход по месяцам")
        st.line_chart(
            {
                "income": {p.month: p.income for p in money.income_history},
                "commission": {p.month: p.commission for p in money.income_history},
            }
        )


# ============ PAGE: АНАЛИТИКА ============
elif page == "📈 Аналитика":
    st.header("📈 Analytics")

    content = content_stats(videos)
    social = dashboard.finance.social_metrics
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Подписчики", format_number(social.followers) if social else "—")
    col2.metric("Просмотры", format_number(content["views"]))
    col3.metric("Охват", format_number(content["reach"]))
    col4.metric("Вовлечённость", f"{content['engagement_rate']:.1f}%")

    col1, col2 = st.columns(2)
    with col1:
        st.subheader("🏆 Топ товаров")
        top = top_products(orders)
        if top:
            st.bar_chart({t["name"]: t["revenue"] for t in top})
    with col2:
        st.subheader("🗂️ Продажи по категориям")
        by_cat = sales_by_category(products, orders)
        if by_cat:
            st.bar_chart(by_cat)

    st.subheader("⚠️ Заканчиваются на складе")
    low = low_stock_products(products)
    if not low:
        st.success("Все товары в достатке")
    for item in low:
        st.write(f"**{item['name']}** — осталось {item['stock']}")


# ============ PAGE: АКТИВНОСТЬ ============
elif page == "🕑 Активность":
    st.header("🕑 Последние изменения")
    st.caption(f"Ревизия: {dashboard.feed.revision}")

    if not dashboard.feed.activity:
        st.info("Пока ничего не менялось")
    for entry in dashboard.feed.activity:
        st.write(f"`{entry['ts'][11:19]}` {entry['kind']} **{entry['entity_id']}** — {entry['action']}")

    st.divider()
    st.subheader("🔔 Уведомления")
    for n in reversed(dashboard.notifications.history[-10:]):
        st.write(f"**{n.title}** — {n.description}")
    if dashboard.notifications.history and st.button("🧹 Очистить"):
        dashboard.notifications.drain()
        st.rerun()
