# storefront/cli.py
import click
import pandas as pd
from werkzeug.security import generate_password_hash
from .extensions import db
from .model import Product, User
from .utils.money import D, round_money

PRODUCT_COLUMNS = {
    "Name": "name",
    "Price": "price",
    "Old Price": "old_price",
    "Color": "color",
    "Gender": "gender",
    "Category ID": "category_id",
    "Image URL": "image_url",
    "Featured": "featured",
    "Trending": "trending",
    "Is New": "is_new",
    "Active": "active",
}
REQUIRED_COLUMNS = ("Name", "Price")

def _read_table(path: str) -> pd.DataFrame:
    if path.lower().endswith(".csv"):
        return pd.read_csv(path)
    return pd.read_excel(path)

def _write_table(df: pd.DataFrame, path: str) -> None:
    if path.lower().endswith(".csv"):
        df.to_csv(path, index=False)
    else:
        df.to_excel(path, index=False)

def _cell(row, column):
    if column not in row or pd.isna(row[column]):
        return None
    return row[column]

def _flag(value, default=False):
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y"}
    return bool(value)

@click.command("create-admin")
@click.option("--email", required=True)
@click.option("--password", required=True)
@click.option("--name", required=True)
def create_admin(email, password, name):
    email = email.strip().lower()
    if User.query.filter_by(email=email).first():
        click.echo("Email already exists"); return
    u = User(email=email, name=name, password_hash=generate_password_hash(password), role="admin")
    db.session.add(u); db.session.commit()
    click.echo(f"Admin created: {u.id} {u.email}")

@click.command("export-products")
@click.argument("path")
def export_products(path):
    """Export the catalog to PATH (.csv or .xlsx)."""
    rows = [
        {
            "ID": p.id,
            **{col: getattr(p, attr) for col, attr in PRODUCT_COLUMNS.items()},
        }
        for p in Product.query.order_by(Product.id).all()
    ]
    df = pd.DataFrame(rows, columns=["ID", *PRODUCT_COLUMNS])
    df["Price"] = df["Price"].map(lambda v: float(v) if v is not None else None)
    df["Old Price"] = df["Old Price"].map(lambda v: float(v) if v is not None else None)
    _write_table(df, path)
    click.echo(f"{len(df)} products exported to {path}")

@click.command("import-products")
@click.argument("path")
def import_products(path):
    """Create products from PATH (.csv or .xlsx) with at least Name and Price columns."""
    df = _read_table(path)
    df.columns = df.columns.str.strip()
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise click.ClickException(f"Missing required columns: {', '.join(missing)}")

    from .product.routes import slugify

    created = 0
    for _, row in df.iterrows():
        name = _cell(row, "Name")
        if not name:
            continue
        old_price = _cell(row, "Old Price")
        category_id = _cell(row, "Category ID")
        product = Product(
            name=str(name).strip(),
            slug=slugify(str(name)),
            price=round_money(D(_cell(row, "Price"))),
            old_price=round_money(D(old_price)) if old_price is not None else None,
            color=_cell(row, "Color"),
            gender=_cell(row, "Gender"),
            category_id=int(category_id) if category_id is not None else None,
            image_url=_cell(row, "Image URL"),
            featured=_flag(_cell(row, "Featured")),
            trending=_flag(_cell(row, "Trending")),
            is_new=_flag(_cell(row, "Is New")),
            active=_flag(_cell(row, "Active"), default=True),
        )
        db.session.add(product)
        created += 1

    db.session.commit()
    click.echo(f"{created} products imported from {path}")

def register_cli(app):
    app.cli.add_command(create_admin)
    app.cli.add_command(export_products)
    app.cli.add_command(import_products)
