# product_service/main.py
from fastapi import FastAPI, HTTPException

app = FastAPI(title="Product Service (dev mock)")


PRODUCTS = {
    1: {"id": 1, "name": "Mechanical Keyboard", "price": "10.00", "stock": 25},
    2: {"id": 2, "name": "Wireless Mouse", "price": "49.50", "stock": 40},
    3: {"id": 3, "name": "27\" Monitor", "price": "899.00", "stock": 8},
    4: {"id": 4, "name": "USB-C Hub", "price": "129.90", "stock": 60},
}


@app.get("/products")
def list_products():
    return list(PRODUCTS.values())


@app.get("/products/{product_id}")
def get_product(product_id: int):
    product = PRODUCTS.get(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product
