from sqlmodel import select

from pethub import models
from pethub.config import settings


def _record(**overrides):
    body = {
        "type": "Deworming",
        "medicineName": "Drontal",
        "veterinarian": "Dr. Reyes",
        "clinic": "Happy Paws",
        "date": "2024-01-10",
    }
    body.update(overrides)
    return body


def test_create_pet_with_picture(client, make_user, png):
    user_id, headers = make_user()
    r = client.post(
        "/api/pet",
        data={"name": "Milo", "birthdate": "2021-03-01", "type": "Cat", "breed": "Tabby"},
        files={"petPicture": ("milo.png", png(), "image/png")},
        headers=headers,
    )
    assert r.status_code == 201, r.text
    pet = r.json()
    assert pet["userId"] == user_id
    assert pet["breed"] == "Tabby"
    assert pet["petPicture"] == f"/uploads/{user_id}_{pet['id']}.png"
    assert (settings.UPLOAD_DIR / f"{user_id}_{pet['id']}.png").is_file()


def test_create_pet_validation(client, make_user, png):
    _uid, headers = make_user()
    r = client.post("/api/pet", data={"name": "Milo", "type": "Cat"}, headers=headers)
    assert r.status_code == 400
    assert r.json()["message"] == "Missing required pet fields (name, birthdate, type)"

    bad_date = client.post("/api/pet", data={"name": "Milo", "birthdate": "soon", "type": "Cat"}, headers=headers)
    assert bad_date.status_code == 400

    not_image = client.post(
        "/api/pet",
        data={"name": "Milo", "birthdate": "2021-03-01", "type": "Cat"},
        files={"petPicture": ("milo.png", b"\x00\x01garbage", "image/png")},
        headers=headers,
    )
    assert not_image.status_code == 415
    assert client.get("/api/pet", headers=headers).json() == []

    assert client.post("/api/pet", data={"name": "Milo"}).status_code == 401


def test_list_pets_scoped_to_owner_with_latest_record(client, make_user, make_pet):
    _a, alice = make_user("alice@example.com")
    _b, bob = make_user("bob@example.com")
    milo = make_pet(alice)
    make_pet(bob, name="Rex", pet_type="Dog")

    client.post(f"/api/pets/{milo['id']}/medical-records", json=_record(date="2023-05-01"), headers=alice)
    client.post(f"/api/pets/{milo['id']}/medical-records", json=_record(date="2024-02-01", type="Rabies"),
                headers=alice)

    pets = client.get("/api/pet", headers=alice).json()
    assert [p["name"] for p in pets] == ["Milo"]
    assert len(pets[0]["medicalRecords"]) == 1
    assert pets[0]["medicalRecords"][0]["type"] == "Rabies"


def test_admin_sees_all_pets(client, make_user, make_pet):
    _a, alice = make_user("alice@example.com")
    _b, admin = make_user("root@example.com", admin=True)
    make_pet(alice)
    make_pet(admin, name="Boss")
    names = sorted(p["name"] for p in client.get("/api/pet", headers=admin).json())
    assert names == ["Boss", "Milo"]


def test_get_and_update_pet_ownership(client, make_user, make_pet, png):
    _a, alice = make_user("alice@example.com")
    _b, bob = make_user("bob@example.com")
    pet = make_pet(alice, breed="Tabby", healthCondition="Healthy")

    assert client.get(f"/api/pet/{pet['id']}", headers=alice).json()["name"] == "Milo"
    assert client.get(f"/api/pet/{pet['id']}", headers=bob).status_code == 404

    missing = client.put(f"/api/pet/{pet['id']}", data={"name": "Milo"}, headers=alice)
    assert missing.status_code == 400
    assert missing.json()["message"] == "Missing required fields: name, type, and birthdate are required"

    foreign = client.put(
        f"/api/pet/{pet['id']}",
        data={"name": "Stolen", "type": "Cat", "birthdate": "2021-03-01"},
        headers=bob,
    )
    assert foreign.status_code == 404

    r = client.put(
        f"/api/pet/{pet['id']}",
        data={"name": "Milo II", "type": "Cat", "birthdate": "2021-03-02"},
        files={"petPicture": ("new.png", png("red"), "image/png")},
        headers=alice,
    )
    assert r.status_code == 200, r.text
    updated = r.json()
    assert updated["name"] == "Milo II"
    assert updated["breed"] == "Tabby"
    assert updated["healthCondition"] == "Healthy"
    assert updated["petPicture"].startswith(f"/uploads/pet_{pet['userId']}_{pet['id']}_")


def test_delete_pet_removes_dependents(client, make_user, make_pet, db):
    _a, alice = make_user("alice@example.com")
    _b, bob = make_user("bob@example.com")
    pet = make_pet(alice)
    client.post("/api/task", json={"petId": pet["id"], "name": "Breakfast", "time": "2024-05-01T08:00:00"},
                headers=alice)
    client.post("/api/vaccination", json={"petId": pet["id"], "vaccineName": "FVRCP", "date": "2024-01-01"},
                headers=alice)
    client.post(f"/api/pets/{pet['id']}/medical-records", json=_record(), headers=alice)

    assert client.delete(f"/api/pet/{pet['id']}", headers=bob).status_code == 404
    r = client.delete(f"/api/pet/{pet['id']}", headers=alice)
    assert r.status_code == 204

    assert db.get(models.Pet, pet["id"]) is None
    assert db.exec(select(models.Task)).all() == []
    assert db.exec(select(models.VaccinationRecord)).all() == []
    assert db.exec(select(models.MedicalRecord)).all() == []


def test_medical_record_crud(client, make_user, make_pet):
    _a, alice = make_user("alice@example.com")
    _b, bob = make_user("bob@example.com")
    pet = make_pet(alice)
    base = f"/api/pets/{pet['id']}/medical-records"

    created = client.post(base, json=_record(), headers=alice)
    assert created.status_code == 201
    assert created.json()["success"] is True
    assert created.json()["message"] == "Medical record added successfully"
    record_id = created.json()["data"]["id"]

    incomplete = client.post(base, json=_record(clinic="  "), headers=alice)
    assert incomplete.status_code == 400
    assert incomplete.json()["message"] == "All required fields must be provided"

    assert client.post(base, json=_record(), headers=bob).status_code == 404
    assert client.get(base, headers=bob).status_code == 404

    client.post(base, json=_record(date="2024-06-01", type="Checkup"), headers=alice)
    listed = client.get(base, headers=alice).json()
    assert [r["type"] for r in listed] == ["Checkup", "Deworming"]

    one = client.get(f"{base}/{record_id}", headers=alice)
    assert one.status_code == 200
    assert one.json()["medicineName"] == "Drontal"
    assert client.get(f"{base}/{record_id}", headers=bob).status_code == 404

    updated = client.put(f"{base}/{record_id}", json=_record(medicineName="Milbemax"), headers=alice)
    assert updated.status_code == 200
    assert updated.json()["data"]["medicineName"] == "Milbemax"
    assert client.put(f"{base}/{record_id}", json=_record(veterinarian=""), headers=alice).status_code == 400

    deleted = client.delete(f"{base}/{record_id}", headers=alice)
    assert deleted.json() == {"success": True, "message": "Medical record deleted successfully"}
    assert client.get(f"{base}/{record_id}", headers=alice).status_code == 404


def test_record_must_match_pet(client, make_user, make_pet):
    _a, alice = make_user("alice@example.com")
    milo = make_pet(alice)
    rex = make_pet(alice, name="Rex", pet_type="Dog")
    record = client.post(f"/api/pets/{milo['id']}/medical-records", json=_record(), headers=alice).json()["data"]
    r = client.get(f"/api/pets/{rex['id']}/medical-records/{record['id']}", headers=alice)
    assert r.status_code == 404
    assert r.json()["message"] == "Medical record not found"
