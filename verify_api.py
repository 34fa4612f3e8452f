import requests
import json

BASE_URL = "http://localhost:8000/api/v1"
EMAIL = "verify_test@example.com"
PASSWORD = "SecurePassword123!"

def print_response(name, response):
    print(f"--- {name} ---")
    print(f"Status: {response.status_code}")
    try:
        print(json.dumps(response.json(), indent=2))
    except ValueError:
        print(response.text)
    print("\n")

def run_verification():
    # 1. Register
    print("1. Registering User...")
    resp = requests.post(f"{BASE_URL}/auth/register", json={
        "name": "Verify Test",
        "email": EMAIL,
        "password": PASSWORD,
    })
    print_response("Register", resp)

    # 2. Login
    print("2. Logging in...")
    resp = requests.post(f"{BASE_URL}/auth/login", json={
        "email": EMAIL,
        "password": PASSWORD
    })
    print_response("Login", resp)
    if resp.status_code != 200:
        print("Login failed, aborting.")
        return
    token = resp.json()["token"]
    headers = {"Authorization": f"Bearer {token}"}

    # 3. List Products
    print("3. Listing Products...")
    resp = requests.get(f"{BASE_URL}/products/?page=1&limit=5")
    print_response("List Products", resp)

    # 4. Create Order
    print("4. Creating Order...")
    # Assuming Product ID 1 exists from seed
    resp = requests.post(f"{BASE_URL}/orders/", headers=headers, json={
        "products": [{"id": 1, "quantity": 1}],
    })
    print_response("Create Order", resp)

    # 5. Oversell (Expected Failure)
    print("5. Ordering more than the stock (Expected Failure)...")
    resp = requests.post(f"{BASE_URL}/orders/", headers=headers, json={
        "products": [{"id": 5, "quantity": 1000}],
    })
    print_response("Create Order (Insufficient Stock)", resp)

    # 6. Order Items
    print("6. Listing Order Items...")
    resp = requests.get(f"{BASE_URL}/orders/", headers=headers)
    print_response("Order Items", resp)

    # 7. Profile
    print("7. Reading Profile...")
    resp = requests.get(f"{BASE_URL}/users/me", headers=headers)
    print_response("Profile", resp)

if __name__ == "__main__":
    run_verification()
