from locust import HttpUser, task, between
import random


class ShopUser(HttpUser):
    wait_time = between(0.1, 0.5)

    def on_start(self):
        # Register a shopper for this simulated client
        uname = f"user_{random.randint(1, 1_000_000)}"
        self.credentials = {"email": f"{uname}@example.com", "password": "loadtest"}
        r = self.client.post("/auth/register", json={**self.credentials, "username": uname})
        body = r.json()
        self.token = body.get("token") if body.get("success") else None

    @task(3)
    def search_products(self):
        term = random.choice(["Laptop", "Mouse", "Keyboard", "Coffee", ""])
        self.client.get("/products/search", params={"q": term}, name="/products/search")

    @task(2)
    def create_order(self):
        if not self.token:
            return
        quantity = random.randint(1, 3)
        price = round(random.random() * 100, 2)
        self.client.post(
            "/orders",
            json={
                "items": [{"productId": random.randint(1, 6), "quantity": quantity, "price": price}],
                "shippingAddress": "1 Load Test Way",
                "totalAmount": round(quantity * price, 2),
            },
            headers={"Authorization": f"Bearer {self.token}"},
        )

    @task(1)
    def login(self):
        self.client.post("/auth/login", json=self.credentials)
