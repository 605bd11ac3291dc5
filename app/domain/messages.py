NEW_ORDER_MESSAGE = """🛒 *Pesanan Baru #{order_id}*
👤 {user_type}: {user_id}
🌱 Batch: {batch_id}
📦 Jumlah: {quantity} bibit
📞 Telepon: {phone}
🏠 Alamat: {address}
🚚 Pengiriman: {delivery}
💰 Pembayaran: {payment}
💵 Total: {currency} {total}"""

USER_TYPE_REGISTERED = "User Terdaftar"
USER_TYPE_GUEST = "Guest Order"


def format_amount(amount: int) -> str:
    """Thousands separated with dots, e.g. 15000 -> 15.000."""
    return f"{amount:,}".replace(",", ".")


def new_order_message(order, authenticated: bool, currency: str = "Rp") -> str:
    return NEW_ORDER_MESSAGE.format(
        order_id=order.id,
        user_type=USER_TYPE_REGISTERED if authenticated else USER_TYPE_GUEST,
        user_id=order.user_id,
        batch_id=order.batch_id,
        quantity=order.quantity,
        phone=order.phone,
        address=order.address,
        delivery=order.delivery.value,
        payment=order.payment,
        currency=currency,
        total=format_amount(order.total_price),
    )
