import json

from sqlmodel import select

from pethub import models

APPLICATION = {
    "shopName": "Paws & Claws",
    "shopLocation": "12 Market St",
    "bio": "Everything for pets",
    "contactNumber": "555-0101",
    "shopMessage": "Welcome!",
    "shopType": "Pet Store",
    "openingTime": "08:00",
    "closingTime": "18:00",
    "availableDays": json.dumps(["Monday", "Saturday"]),
    "isAvailable": "true",
    "latitude": "14.5995",
    "longitude": "120.9842",
}


def _apply(client, headers, files=None, **overrides):
    data = dict(APPLICATION)
    data.update(overrides)
    return client.post("/api/shop/apply", data=data, files=files, headers=headers)


def _open_shop(client, make_user, email="merchant@example.com", full_name="Mara Merchant", **overrides):
    """Register a user, apply and approve; return (user_id, headers, shop)."""
    user_id, headers = make_user(email, full_name=full_name)
    _admin_id, admin = make_user("admin-" + email, admin=True)
    application = _apply(client, headers, **overrides).json()["data"]
    approved = client.put(f"/api/admin/shop-applications/{application['id']}/approve", headers=admin)
    assert approved.status_code == 200, approved.text
    return user_id, headers, approved.json()["shop"]


def test_apply_creates_pending_application(client, make_user, png):
    user_id, headers = make_user()
    r = _apply(client, headers, files={"shopImage": ("front.png", png(), "image/png")})
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["message"] == "Shop application submitted successfully"
    app = body["data"]
    assert app["status"] == "pending"
    assert app["userId"] == user_id
    assert app["availableDays"] == ["Monday", "Saturday"]
    assert app["latitude"] == 14.5995
    assert app["shopImage"].startswith(f"/uploads/shop_{user_id}_")

    again = _apply(client, headers)
    assert again.status_code == 400
    assert again.json()["message"] == "You already have a pending shop application"


def test_apply_validation(client, make_user):
    _uid, headers = make_user()
    bad_days = _apply(client, headers, availableDays="Monday,Tuesday")
    assert bad_days.status_code == 400
    assert bad_days.json()["message"] == "Invalid available days format"

    not_list = _apply(client, headers, availableDays=json.dumps({"day": "Monday"}))
    assert not_list.json()["message"] == "Invalid available days format"

    missing = _apply(client, headers, bio="")
    assert missing.status_code == 400
    assert missing.json()["message"] == "All required fields must be provided"

    no_days = _apply(client, headers, availableDays="[]")
    assert no_days.status_code == 400

    no_coords = _apply(client, headers, latitude="", longitude="")
    assert no_coords.status_code == 201
    assert no_coords.json()["data"]["latitude"] == 0.0


def test_approve_creates_shop_and_promotes_owner(client, make_user, db):
    user_id, headers, shop = _open_shop(client, make_user)
    assert shop["approved"] is True
    assert shop["shopName"] == "Paws & Claws"
    assert shop["userId"] == user_id
    assert db.get(models.User, user_id).is_shop_owner is True

    status = client.get("/api/user/shop-status", headers=headers).json()["data"]
    assert status["isShopOwner"] is True
    assert status["hasShop"] is True
    assert status["shopApplication"]["status"] == "approved"
    assert status["shopApplication"]["shopName"] == "Paws & Claws"

    owner_again = _apply(client, headers)
    assert owner_again.status_code == 409


def test_process_application_rules(client, make_user, db):
    _uid, headers = make_user()
    _aid, admin = make_user("root@example.com", admin=True)
    app = _apply(client, headers).json()["data"]
    url = f"/api/admin/shop-applications/{app['id']}"

    assert client.put(f"{url}/maybe", headers=admin).json()["message"] == "Valid action (approve/reject) is required"
    assert client.put("/api/admin/shop-applications/999/approve", headers=admin).status_code == 404
    assert client.put(f"{url}/approve", headers=headers).status_code == 403

    rejected = client.put(f"{url}/reject", headers=admin)
    assert rejected.status_code == 200
    assert rejected.json()["message"] == "Application rejected successfully"
    assert rejected.json()["application"]["status"] == "rejected"
    assert db.exec(select(models.Shop)).all() == []

    again = client.put(f"{url}/approve", headers=admin)
    assert again.status_code == 400
    assert again.json()["message"] == "Application has already been processed"

    # a rejected application does not block a new one
    assert _apply(client, headers).status_code == 201


def test_approve_conflicts_when_applicant_already_owns_shop(client, make_user, db):
    user_id, headers = make_user()
    _aid, admin = make_user("root@example.com", admin=True)
    app = _apply(client, headers).json()["data"]
    created = client.post("/api/shop", json={
        "userId": user_id, "shopName": "Direct", "shopLocation": "Here", "latitude": 1.5, "longitude": 2.5,
        "shopType": "Vet",
    }, headers=admin)
    assert created.status_code == 201

    r = client.put(f"/api/admin/shop-applications/{app['id']}/approve", headers=admin)
    assert r.status_code == 409
    assert db.get(models.ShopApplication, app["id"]).status == "pending"
    assert len(db.exec(select(models.Shop)).all()) == 1


def test_admin_create_shop(client, make_user, db):
    user_id, headers = make_user()
    _aid, admin = make_user("root@example.com", admin=True)
    body = {"userId": user_id, "shopName": "Direct", "shopLocation": "Here", "latitude": 1.5, "longitude": 2.5,
            "shopType": "Vet"}

    assert client.post("/api/shop", json=body, headers=headers).status_code == 403
    r = client.post("/api/shop", json=body, headers=admin)
    assert r.status_code == 201, r.text
    shop = r.json()
    assert shop["openingTime"] == "09:00" and shop["closingTime"] == "17:00"
    assert shop["availableDays"] == ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]
    assert shop["bio"] == ""
    assert db.get(models.User, user_id).is_shop_owner is True

    assert client.post("/api/shop", json=body, headers=admin).status_code == 409
    assert client.post("/api/shop", json=dict(body, userId=999), headers=admin).status_code == 404
    assert client.post("/api/shop", json=dict(body, shopName=" "), headers=admin).status_code == 400

    pins = client.get("/api/shop", headers=headers).json()
    assert pins == [{
        "id": shop["id"], "shopName": "Direct", "latitude": 1.5, "longitude": 2.5, "shopType": "Vet",
        "shopLocation": "Here", "isAvailable": True,
    }]


def test_shop_profile_get_and_update(client, make_user, png):
    _uid, headers = make_user("nobody@example.com")
    assert client.get("/api/shop/profile", headers=headers).status_code == 404

    _owner, owner, shop = _open_shop(client, make_user)
    r = client.get("/api/shop/profile", headers=owner)
    assert r.json()["message"] == "Shop profile retrieved successfully"
    assert r.json()["data"]["id"] == shop["id"]

    no_name = client.put("/api/shop/profile", data={"shopName": ""}, headers=owner)
    assert no_name.status_code == 400
    assert no_name.json()["message"] == "Shop name is required"

    r = client.put(
        "/api/shop/profile",
        data={"shopName": "Paws Deluxe", "isAvailable": "false", "bio": " ", "contactNumber": "555-9999"},
        files={"shopImage": ("new.png", png("green"), "image/png")},
        headers=owner,
    )
    assert r.status_code == 200, r.text
    data = r.json()["data"]
    assert data["shopName"] == "Paws Deluxe"
    assert data["isAvailable"] is False
    assert data["bio"] == "Everything for pets"
    assert data["contactNumber"] == "555-9999"
    assert data["shopLocation"] == "12 Market St"
    assert data["shopImage"].startswith("/uploads/shop_")


def test_promotional_posts(client, make_user, png):
    _uid, regular = make_user("regular@example.com")
    denied = client.post("/api/shop/promotional-post", data={"caption": "Sale"}, headers=regular)
    assert denied.status_code == 403
    assert denied.json()["message"] == "Only shop owners can create promotional posts"
    assert client.get("/api/shop/promotional-post", headers=regular).status_code == 404

    _owner, owner, shop = _open_shop(client, make_user)
    assert client.post("/api/shop/promotional-post", data={"caption": " "}, headers=owner).status_code == 400
    first = client.post("/api/shop/promotional-post", data={"caption": "Sale"}, headers=owner)
    assert first.status_code == 201
    second = client.post(
        "/api/shop/promotional-post",
        data={"caption": "New stock"},
        files={"image": ("promo.png", png(), "image/png")},
        headers=owner,
    ).json()["data"]
    assert second["image"].startswith(f"/uploads/promo_{shop['id']}_")

    posts = client.get("/api/shop/promotional-post", headers=owner).json()
    assert [p["caption"] for p in posts] == ["New stock", "Sale"]

    profile = client.get(f"/api/shop-profile/{shop['id']}").json()
    assert profile["ownerName"] == "Mara Merchant"
    assert [p["caption"] for p in profile["promotionalPosts"]] == ["New stock", "Sale"]
    assert client.get("/api/shop-profile/999").status_code == 404


def test_shop_map_search(client, make_user):
    _open_shop(client, make_user)
    _open_shop(client, make_user, email="ben@example.com", full_name="Ben", shopName="Bark Avenue",
               shopLocation="9 Elm Rd")
    pins = client.get("/api/shops/map").json()
    assert [(p["shopName"], p["ownerName"]) for p in pins] == [("Bark Avenue", "Ben"), ("Paws & Claws", "Mara Merchant")]
    assert pins[0]["approved"] is True
    assert "bio" not in pins[0]

    by_location = client.get("/api/shops/map?search=MARKET").json()
    assert [p["shopName"] for p in by_location] == ["Paws & Claws"]
    assert client.get("/api/shops/map?search=bark").json()[0]["ownerName"] == "Ben"
    assert client.get("/api/shops/map?search=nowhere").json() == []


def test_reviews_update_rating(client, make_user):
    _owner, owner, shop = _open_shop(client, make_user)
    _a, alice = make_user("alice@example.com", full_name="Alice")
    _b, bob = make_user("bob@example.com", full_name="Bob")

    own = client.post("/api/shop/reviews", json={"shopId": shop["id"], "rating": 5, "review": "mine"}, headers=owner)
    assert own.status_code == 403

    r = client.post("/api/shop/reviews", json={"shopId": shop["id"], "rating": 5, "review": "Great"}, headers=alice)
    assert r.status_code == 201, r.text
    assert r.json()["userName"] == "Alice"
    client.post("/api/shop/reviews", json={"shopId": shop["id"], "rating": 2, "review": "Meh"}, headers=bob)

    dup = client.post("/api/shop/reviews", json={"shopId": shop["id"], "rating": 1, "review": "x"}, headers=alice)
    assert dup.status_code == 409
    too_long = client.post("/api/shop/reviews", json={"shopId": shop["id"], "rating": 3, "review": "x" * 61},
                           headers=bob)
    assert too_long.status_code == 400
    out_of_range = client.post("/api/shop/reviews", json={"shopId": shop["id"], "rating": 6, "review": "x"},
                               headers=bob)
    assert out_of_range.status_code == 400
    assert client.post("/api/shop/reviews", json={"shopId": 999, "rating": 3, "review": "x"},
                       headers=bob).status_code == 404

    profile = client.get(f"/api/shop-profile/{shop['id']}").json()
    assert profile["rating"] == 3.5
    assert profile["totalReviews"] == 2

    reviews = client.get(f"/api/shop/reviews?shopId={shop['id']}").json()
    assert [rv["userName"] for rv in reviews] == ["Bob", "Alice"]
    assert client.get("/api/shop/reviews?shopId=999").status_code == 404
