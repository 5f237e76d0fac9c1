from datetime import datetime, timedelta

from solarshop import models
from solarshop.models import Article, Project, ServiceCategory, Subscriber


def test_products_exclude_archived_and_sort_by_name(client, products):
    res = client.get("/products")
    assert res.status_code == 200
    assert [p["name"] for p in res.json()] == ["Hybrid Inverter 5kVA", "Mono Panel 450W"]


def test_products_by_category(client, products):
    res = client.get("/products?category=solar-panels")
    assert [p["id"] for p in res.json()] == [products[0].id]


def test_products_by_ids(client, products):
    ids = f"{products[0].id},{products[2].id}"
    res = client.get(f"/products?ids={ids}")
    assert sorted(p["id"] for p in res.json()) == sorted([products[0].id, products[2].id])

    res = client.get("/products?ids=a,b")
    assert res.status_code == 400
    assert res.json() == {"detail": "ids must be a comma separated list of integers"}


def test_product_detail(client, products):
    res = client.get(f"/products/{products[0].id}")
    assert res.status_code == 200
    assert res.json()["wattage"] == 450

    assert client.get(f"/products/{products[2].id}").status_code == 404
    assert client.get("/products/9999").status_code == 404


def test_only_published_articles(client, db):
    now = datetime.utcnow()
    db.add_all([
        Article(title="Net metering", slug="net-metering", content="...", published_at=now - timedelta(days=2)),
        Article(title="Battery care", slug="battery-care", content="...", published_at=now),
        Article(title="Draft", slug="draft", content="..."),
    ])
    db.commit()

    res = client.get("/articles")
    assert [a["slug"] for a in res.json()] == ["battery-care", "net-metering"]
    assert len(client.get("/articles?limit=1").json()) == 1


def test_testimonials_are_approved_only(client, db):
    db.add_all([
        models.Testimonial(client_name="Ken", quote="Great install", approved=True, is_featured=True),
        models.Testimonial(client_name="Wairimu", quote="Quick delivery", approved=True),
        models.Testimonial(client_name="Spam", quote="buy now", approved=False),
    ])
    db.commit()

    names = {t["client_name"] for t in client.get("/testimonials").json()}
    assert names == {"Ken", "Wairimu"}

    featured = client.get("/testimonials?featured=true").json()
    assert [t["client_name"] for t in featured] == ["Ken"]

    assert len(client.get("/testimonials?limit=1").json()) == 1
    # ignored rather than rejected
    assert len(client.get("/testimonials?limit=abc").json()) == 2
    assert len(client.get("/testimonials?limit=0").json()) == 2


def test_submit_testimonial_is_stored_unapproved(client, db):
    res = client.post(
        "/testimonials/submit",
        json={"client_name": "Otieno", "email": "o@example.com", "quote": "Lights on!", "consent": True},
    )
    assert res.status_code == 201

    stored = db.query(models.Testimonial).one()
    assert stored.approved is False
    assert client.get("/testimonials").json() == []


def test_submit_testimonial_requires_consent(client, db):
    res = client.post(
        "/testimonials/submit",
        json={"client_name": "Otieno", "email": "o@example.com", "quote": "Lights on!", "consent": False},
    )
    assert res.status_code == 400
    assert res.json()["detail"] == "Name, Email, Quote, and Consent are required."
    assert db.query(models.Testimonial).count() == 0


def test_subscribe_and_duplicate(client, db):
    res = client.post("/subscribe", json={"email": "reader@example.com"})
    assert res.status_code == 201

    res = client.post("/subscribe", json={"email": "Reader@example.com"})
    assert res.status_code == 409
    assert db.query(Subscriber).count() == 1


def test_subscribe_rejects_bad_email(client):
    assert client.post("/subscribe", json={"email": "not-an-email"}).status_code == 400


def test_scheduled_articles_stay_hidden(client, db):
    now = datetime.utcnow()
    db.add_all([
        Article(title="Net metering", slug="net-metering", content="...", published_at=now - timedelta(days=1)),
        Article(title="Coming soon", slug="coming-soon", content="...", published_at=now + timedelta(days=3)),
    ])
    db.commit()

    assert [a["slug"] for a in client.get("/articles").json()] == ["net-metering"]
    assert client.get("/articles/coming-soon").status_code == 404


def test_article_by_slug(client, db):
    db.add_all([
        Article(title="Net metering", slug="net-metering", content="Export to KPLC", published_at=datetime.utcnow()),
        Article(title="Draft", slug="draft", content="..."),
    ])
    db.commit()

    res = client.get("/articles/net-metering")
    assert res.status_code == 200
    assert res.json()["content"] == "Export to KPLC"

    res = client.get("/articles/draft")
    assert res.status_code == 404
    assert res.json() == {"detail": "Article not found or not published"}
    assert client.get("/articles/missing").status_code == 404


def test_projects_are_published_only_in_display_order(client, db):
    db.add_all([
        Project(title="School rooftop", is_published=True, display_order=2),
        Project(title="Farm pump", is_published=True, display_order=1, type="video", highlights=["3kW"]),
        Project(title="Unfinished", is_published=False, display_order=0),
    ])
    db.commit()

    res = client.get("/projects")
    assert res.status_code == 200
    projects = res.json()
    assert [p["title"] for p in projects] == ["Farm pump", "School rooftop"]
    assert projects[0]["highlights"] == ["3kW"]


def test_service_categories_form_a_tree(client, db):
    installs = ServiceCategory(name="Installations", slug="installations", display_order=2)
    repairs = ServiceCategory(name="Repairs", slug="repairs", display_order=1)
    db.add_all([installs, repairs])
    db.flush()
    db.add_all([
        ServiceCategory(name="Commercial", slug="commercial", parent_id=installs.id, display_order=2),
        ServiceCategory(name="Residential", slug="residential", parent_id=installs.id, display_order=1),
    ])
    db.commit()

    res = client.get("/service-categories")
    assert res.status_code == 200
    tree = res.json()
    assert [c["slug"] for c in tree] == ["repairs", "installations"]
    assert tree[1]["href"] == "/services/installations"
    assert [c["slug"] for c in tree[1]["subcategories"]] == ["residential", "commercial"]
    assert tree[0]["subcategories"] == []


def test_service_category_parent_cycle_is_flattened(client, db):
    a = ServiceCategory(name="A", slug="a", display_order=1)
    b = ServiceCategory(name="B", slug="b", display_order=2)
    db.add_all([a, b])
    db.flush()
    a.parent_id, b.parent_id = b.id, a.id
    db.commit()

    tree = client.get("/service-categories").json()
    assert [c["slug"] for c in tree] == ["a", "b"]
    assert all(c["subcategories"] == [] for c in tree)
