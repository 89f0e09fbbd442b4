from models import JobLead, RadarZone
from scorer import rescore_all_leads, score_many, score_posting


def test_no_zones_scores_zero(make_posting):
    result = score_posting(make_posting(), [])
    assert result.score == 0
    assert result.green_flags == []
    assert result.red_flags == []


def test_green_and_red_across_two_zones(make_posting):
    posting = make_posting(title="Python Developer", location="On-site NY")
    zones = [
        RadarZone(name="Z1", green_flags=["python"]),
        RadarZone(name="Z2", red_flags=["on-site"]),
    ]
    result = score_posting(posting, zones)

    assert result.score == 25 - 50
    assert [(m.flag, m.field, m.points) for m in result.green_flags] == [("python", "title", 25)]
    assert [(m.flag, m.field, m.points) for m in result.red_flags] == [("on-site", "location", -50)]


def test_matches_in_several_zones_accumulate(make_posting):
    posting = make_posting(title="Python Developer")
    zones = [RadarZone(name="A", green_flags=["python"]), RadarZone(name="B", green_flags=["Python"])]

    result = score_posting(posting, zones)
    assert result.score == 50
    assert len(result.green_flags) == 2


def test_each_field_scores_independently(make_posting):
    posting = make_posting(
        title="Python Engineer",
        company_name="Python Software Ltd",
        location="Remote",
        description="We write Python every day",
    )
    result = score_posting(posting, [RadarZone(name="A", green_flags=["PYTHON"])])

    assert result.score == 25 + 15 + 5
    assert [m.field for m in result.green_flags] == ["title", "company", "description"]


def test_red_flag_weights(make_posting):
    posting = make_posting(
        title="Senior Recruiter",
        company_name="Recruit Co",
        location="Recruitment hub",
        description="recruitment agency",
    )
    result = score_posting(posting, [RadarZone(name="A", red_flags=["recruit"])])
    assert result.score == -30 - 20 - 50 - 10


def test_blank_flags_and_inactive_zones_are_ignored(make_posting):
    zones = [
        RadarZone(name="A", green_flags=["", "   "], red_flags=[""]),
        RadarZone(name="B", green_flags=["python"], active=False),
    ]
    result = score_posting(make_posting(), zones)
    assert result.score == 0
    assert result.green_flags == [] and result.red_flags == []


def test_custom_weights(make_posting):
    weights = {"green_flags": {"title": 1, "company": 0, "location": 0, "description": 0}, "red_flags": {}}
    result = score_posting(make_posting(), [RadarZone(name="A", green_flags=["python"])], weights)
    assert result.score == 1


def test_scoring_is_deterministic(make_posting):
    zones = [RadarZone(name="A", green_flags=["python", "london"], red_flags=["acme"])]
    posting = make_posting()
    assert score_posting(posting, zones).to_dict() == score_posting(posting, zones).to_dict()


def test_to_dict_shape(make_posting):
    result = score_posting(make_posting(), [RadarZone(name="A", green_flags=["london"])])
    assert result.to_dict() == {
        "score": 10,
        "matches": {
            "green_flags": [{"flag": "london", "field": "location", "points": 10}],
            "red_flags": [],
        },
    }


def test_score_many_sorts_descending_and_stable(make_posting):
    postings = [
        make_posting(title="Office Manager", job_url="https://a/1"),
        make_posting(title="Python Dev", job_url="https://a/2"),
        make_posting(title="Sales Lead", job_url="https://a/3"),
        make_posting(title="Python Lead", job_url="https://a/4"),
    ]
    zones = [RadarZone(name="A", green_flags=["python"])]

    scored = score_many(postings, zones)
    assert [s.posting.job_url for s in scored] == ["https://a/2", "https://a/4", "https://a/1", "https://a/3"]
    assert [s.score for s in scored] == [25, 25, 0, 0]


def test_rescore_all_leads_uses_active_zones(db):
    db.insert_lead_if_absent(JobLead(title="Python Developer", company_name="Acme", job_url="https://a/1", source="Lever"))
    db.insert_lead_if_absent(JobLead(
        title="Account Manager", company_name="Acme", job_url="https://a/2", source="Lever", location="On-site",
    ))
    db.create_zone(RadarZone(name="Backend", green_flags=["python"], red_flags=["on-site"]))
    db.create_zone(RadarZone(name="Paused", green_flags=["account"], active=False))

    assert rescore_all_leads() == 2
    assert db.get_lead_by_url("https://a/1").match_score == 25
    assert db.get_lead_by_url("https://a/2").match_score == -50


def test_rescore_with_explicit_zones(db):
    db.insert_lead_if_absent(JobLead(title="Python Developer", company_name="Acme", job_url="https://a/1", source="Lever"))
    assert rescore_all_leads([RadarZone(name="X", green_flags=["developer"])]) == 1
    assert db.get_lead_by_url("https://a/1").match_score == 25
