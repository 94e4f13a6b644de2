"""
Product import constants — CSV schema, image formats, colour palette.

Fixed values shared by the CSV parser, image uploader and reconciler.
Version: 1.0.0
"""

REQUIRED_COLUMNS: tuple[str, ...] = ("name", "price")

CSV_COLUMNS: tuple[str, ...] = (
    "name",
    "description",
    "category",
    "price",
    "compare_at_price",
    "quantity",
    "moq",
    "status",
    "featured",
    "seo_title",
    "seo_description",
    "keywords",
    "low_stock_threshold",
    "preorder_shipping",
    "images",
    "variant_color",
    "variant_color_hex",
    "variant_size",
    "variant_price",
    "variant_stock",
)

PRODUCT_STATUSES: tuple[str, ...] = ("active", "draft", "archived")
DEFAULT_STATUS: str = "draft"
DEFAULT_MOQ: int = 1
DEFAULT_LOW_STOCK_THRESHOLD: int = 5
MAX_DESCRIPTION_LENGTH: int = 500

TRUE_TOKENS: frozenset[str] = frozenset({"true", "1", "yes"})
FALSE_TOKENS: frozenset[str] = frozenset({"false", "0", "no"})

IMAGE_CONTENT_TYPES: dict[str, str] = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".gif": "image/gif",
}
ALLOWED_IMAGE_EXTENSIONS: frozenset[str] = frozenset(IMAGE_CONTENT_TYPES)

# Colour names merchants commonly type in variant_color
PRESET_COLOR_HEX: dict[str, str] = {
    "black": "#000000",
    "white": "#FFFFFF",
    "red": "#EF4444",
    "blue": "#3B82F6",
    "navy": "#1E3A5F",
    "green": "#22C55E",
    "yellow": "#EAB308",
    "pink": "#EC4899",
    "purple": "#A855F7",
    "orange": "#F97316",
    "gray": "#6B7280",
    "brown": "#92400E",
    "beige": "#D2B48C",
    "maroon": "#800000",
    "teal": "#14B8A6",
    "cream": "#FFFDD0",
    "gold": "#D4AF37",
    "silver": "#C0C0C0",
}

DEFAULT_VARIANT_NAME: str = "Default"
PRODUCT_CODE_PREFIX: str = "SLI"
IMPORT_PATH_PREFIX: str = "imports"

TEMPLATE_FILENAME: str = "products-import-template.csv"
TEMPLATE_CSV: str = (
    "name,description,category,price,compare_at_price,quantity,moq,status,featured,"
    "seo_title,seo_description,keywords,low_stock_threshold,preorder_shipping,images,"
    "variant_color,variant_color_hex,variant_size,variant_price,variant_stock\n"
    '"Wireless Bluetooth Earbuds","Premium wireless Bluetooth 5.3 earbuds with ANC and 30hr battery.",'
    '"Electronics",89.99,120.00,150,1,"Active",true,"Wireless Bluetooth Earbuds",'
    '"Shop premium wireless earbuds.","earbuds,bluetooth,wireless",5,,'
    '"earbuds-white.jpg;earbuds-case.jpg",,,,,\n'
    '"Classic Cotton T-Shirt","100% premium combed cotton t-shirt.","Fashion",35.00,50.00,,2,'
    '"Active",true,"Classic Cotton T-Shirt","Premium cotton t-shirt.","basics,cotton",5,,'
    '"tshirt-black.jpg;tshirt-white.jpg","Black","#000000","S",35.00,80\n'
    '"Classic Cotton T-Shirt","100% premium combed cotton t-shirt.","Fashion",35.00,50.00,,2,'
    '"Active",true,"Classic Cotton T-Shirt","Premium cotton t-shirt.","basics,cotton",5,,'
    '"tshirt-black.jpg;tshirt-white.jpg","Black","#000000","M",35.00,100\n'
    '"Classic Cotton T-Shirt","100% premium combed cotton t-shirt.","Fashion",35.00,50.00,,2,'
    '"Active",true,"Classic Cotton T-Shirt","Premium cotton t-shirt.","basics,cotton",5,,'
    '"tshirt-black.jpg;tshirt-white.jpg","White","#FFFFFF","M",38.00,90\n'
)
