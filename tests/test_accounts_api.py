def post_entry(client, headers, debit_account, credit_account, amount=100, entry_date="2024-03-01"):
    return client.post("/api/journal", headers=headers, json={
        "date": entry_date,
        "lines": [
            {"account_id": debit_account, "debit": amount, "credit": 0},
            {"account_id": credit_account, "debit": 0, "credit": amount},
        ],
    })


class TestAuthentication:

    def test_missing_token_is_401(self, client, seeded):
        response = client.get("/api/accounts")
        assert response.status_code == 401

    def test_invalid_token_is_401(self, client, seeded):
        response = client.get("/api/accounts", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401

    def test_health_needs_no_token(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["database"] == "ok"


class TestCreateAccount:

    def test_create_account(self, client, auth_headers, accounts):
        response = client.post("/api/accounts", headers=auth_headers, json={
            "code": "6700", "name": "Laundry", "category": "EXPENSE", "parent_id": accounts["6000"],
        })
        assert response.status_code == 201
        data = response.json()
        assert data["code"] == "6700"
        assert data["parent_id"] == accounts["6000"]
        assert data["is_active"] is True

    def test_duplicate_code_is_rejected(self, client, auth_headers, seeded):
        response = client.post("/api/accounts", headers=auth_headers, json={
            "code": "1000", "name": "Another Cash", "category": "ASSET",
        })
        assert response.status_code == 400
        assert response.json()["error"] == "DuplicateCode"

    def test_unknown_category_is_rejected(self, client, auth_headers, seeded):
        response = client.post("/api/accounts", headers=auth_headers, json={
            "code": "9000", "name": "Mystery", "category": "REVENUE",
        })
        assert response.status_code == 400

    def test_unknown_parent_is_rejected(self, client, auth_headers, seeded):
        response = client.post("/api/accounts", headers=auth_headers, json={
            "code": "9000", "name": "Orphan", "category": "ASSET", "parent_id": 99999,
        })
        assert response.status_code == 400
        assert response.json()["error"] == "ReferentialError"


class TestListAccounts:

    def test_list_is_paginated_and_ordered_by_code(self, client, auth_headers, seeded):
        response = client.get("/api/accounts?page=1&page_size=5", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["page"] == 1
        assert data["page_size"] == 5
        assert len(data["items"]) == 5
        assert data["total"] == seeded["chart_of_accounts"]["accounts"]
        codes = [a["code"] for a in data["items"]]
        assert codes == sorted(codes)

    def test_search_matches_code_or_name(self, client, auth_headers, seeded):
        by_name = client.get("/api/accounts?search=revenue", headers=auth_headers).json()
        assert {a["code"] for a in by_name["items"]} == {"4000", "4100"}

        by_code = client.get("/api/accounts?search=130", headers=auth_headers).json()
        assert {a["code"] for a in by_code["items"]} == {"1300"}

    def test_page_size_over_limit_is_rejected(self, client, auth_headers, seeded):
        response = client.get("/api/accounts?page_size=101", headers=auth_headers)
        assert response.status_code == 400


class TestGetUpdateDelete:

    def test_missing_account_is_404(self, client, auth_headers, seeded):
        response = client.get("/api/accounts/99999", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["error"] == "NotFound"

    def test_rename_account(self, client, auth_headers, accounts):
        response = client.put(f"/api/accounts/{accounts['6500']}", headers=auth_headers, json={
            "name": "Marketing and Social Media",
        })
        assert response.status_code == 200
        assert response.json()["name"] == "Marketing and Social Media"
        assert response.json()["category"] == "EXPENSE"

    def test_code_change_checks_uniqueness(self, client, auth_headers, accounts):
        response = client.put(f"/api/accounts/{accounts['6500']}", headers=auth_headers, json={"code": "6600"})
        assert response.status_code == 400
        assert response.json()["error"] == "DuplicateCode"

    def test_category_change_allowed_before_postings(self, client, auth_headers, accounts):
        response = client.put(f"/api/accounts/{accounts['4200']}", headers=auth_headers, json={
            "category": "LIABILITY",
        })
        assert response.status_code == 200
        assert response.json()["category"] == "LIABILITY"

    def test_category_locked_after_postings(self, client, auth_headers, accounts):
        assert post_entry(client, auth_headers, accounts["1000"], accounts["3000"]).status_code == 201

        response = client.put(f"/api/accounts/{accounts['1000']}", headers=auth_headers, json={
            "category": "LIABILITY",
        })
        assert response.status_code == 400
        assert response.json()["error"] == "CategoryLocked"

    def test_account_cannot_be_its_own_parent(self, client, auth_headers, accounts):
        response = client.put(f"/api/accounts/{accounts['6500']}", headers=auth_headers, json={
            "parent_id": accounts["6500"],
        })
        assert response.status_code == 400

    def test_parent_cannot_be_a_descendant(self, client, auth_headers, accounts):
        # 1310 Retail Products already sits under 1300 Inventory
        response = client.put(f"/api/accounts/{accounts['1300']}", headers=auth_headers, json={
            "parent_id": accounts["1310"],
        })
        assert response.status_code == 400
        assert response.json()["error"] == "ValidationError"

        account = client.get(f"/api/accounts/{accounts['1300']}", headers=auth_headers).json()
        assert account["parent_id"] is None

    def test_delete_unused_account(
self, client, auth_headers, accounts):
        response = client.delete(f"/api/accounts/{accounts['6500']}", headers=auth_headers)
        assert response.status_code == 204
        assert client.get(f"/api/accounts/{accounts['6500']}", headers=auth_headers).status_code == 404

    def test_delete_account_with_postings_is_rejected(self, client, auth_headers, accounts):
        post_entry(client, auth_headers, accounts["1000"], accounts["3000"])

        response = client.delete(f"/api/accounts/{accounts['1000']}", headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "ReferencedByLedger"

    def test_delete_account_mapped_by_product_is_rejected(self, client, auth_headers, accounts, product_id):
        response = client.delete(f"/api/accounts/{accounts['5000']}", headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "AccountInUse"
