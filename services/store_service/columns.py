"""Column names of the Bitable tables backing the catalog and order ledger.

These are the field names as they appear in the merchant's base; they are
part of the wire contract with the tabular service.
"""

# Product (stock) table
PRODUCT_NAME = "商品名称"
PRODUCT_TYPE = "类型"
PRODUCT_IMAGE = "商品图片"
PRODUCT_PRICE = "商品单价"
PRODUCT_STOCK = "库存剩余"
PRODUCT_UNIT = "单位"
PRODUCT_DESCRIPTION = "商品描述"

PRODUCT_FIELDS = [
    PRODUCT_NAME,
    PRODUCT_TYPE,
    PRODUCT_IMAGE,
    PRODUCT_PRICE,
    PRODUCT_STOCK,
    PRODUCT_UNIT,
    PRODUCT_DESCRIPTION,
]

# Order line-item table
ORDER_ID = "订单号"
ORDER_PRODUCT = "商品名称"
ORDER_STATUS = "订单状态"
ORDER_USERNAME = "用户名称"
ORDER_QUANTITY = "订购数量"
ORDER_UNIT_PRICE = "下单单价"
ORDER_AMOUNT = "订单金额"
ORDER_CREATED_AT = "下单时间"
ORDER_RECIPIENT = "收货人"
ORDER_PHONE = "联系方式"
ORDER_ADDRESS = "收货地址"

ORDER_AGGREGATION_FIELDS = [
    ORDER_ID,
    ORDER_STATUS,
    ORDER_PRODUCT,
    ORDER_QUANTITY,
    ORDER_UNIT_PRICE,
    ORDER_AMOUNT,
    ORDER_CREATED_AT,
    ORDER_RECIPIENT,
    ORDER_PHONE,
    ORDER_ADDRESS,
]

# External order status vocabulary
STATUS_PLACED = "已下单"
STATUS_REVIEWING = "审核中"
STATUS_SHIPPING = "发货中"
STATUS_RECEIVED = "已签收"
STATUS_SETTLED = "已结算"
STATUS_CANCELLED = "已取消"
