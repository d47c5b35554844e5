"""
Unit tests for the contact criteria engine and list-criteria heuristics.
"""
import pytest

from realty_crm.services.criteria import (
    ContactCriteria,
    filter_contacts_by_field,
    infer_filter_field,
    matches_search_terms,
    query_contacts,
    simplify_list_criteria,
    summarize_contact,
)
from conftest import run


class TestContactCriteria:

    def test_blank_and_null_values_are_dropped(self):
        criteria = ContactCriteria(businessSector="  ", company="null", hasNotes="None")
        assert criteria.is_empty()

    def test_booleans_become_strings(self):
        assert ContactCriteria(hasLinkedIn=True).hasLinkedIn == "true"

    def test_unknown_keys_ignored(self):
        assert ContactCriteria.model_validate({"zipCode": "15232"}).is_empty()


class TestQueryContacts:

    def test_exact_sector(self, store):
        contacts = run(query_contacts(store, ContactCriteria(businessSector="finance")))
        assert [c["id"] for c in contacts] == ["c2"]

    def test_has_linkedin(self, store):
        contacts = run(query_contacts(store, ContactCriteria(hasLinkedIn="true")))
        assert [c["id"] for c in contacts] == ["c1"]

    def test_has_no_notes(self, store):
        contacts = run(query_contacts(store, ContactCriteria(hasNotes="false")))
        assert {c["id"] for c in contacts} == {"c1", "c3"}

    def test_search_terms_scan_several_fields(self, store):
        contacts = run(query_contacts(store, ContactCriteria(searchTerms="CAPITAL")))
        assert [c["id"] for c in contacts] == ["c2"]

    def test_criteria_are_combined(self, store):
        contacts = run(query_contacts(store, ContactCriteria(hasLinkedIn="true", searchTerms="steel")))
        assert contacts == []

    def test_search_term_matches_notes(self):
        assert matches_search_terms({"notes": "Met at Open House"}, "open house")
        assert not matches_search_terms({"address": "Open House Rd"}, "open house")


class TestSimplifyListCriteria:

    def test_priority_term_first(self):
        assert simplify_list_criteria("tech investors in Pittsburgh") == "investor"

    def test_sector_keyword(self):
        assert simplify_list_criteria("companies working in healthcare") == "healthcare"

    def test_quoted_phrase(self):
        assert simplify_list_criteria('people tagged "gold client"') == "gold client"

    def test_last_meaningful_word(self):
        assert simplify_list_criteria("contacts at Acme") == "acme"

    def test_only_stopwords_falls_back_to_text(self):
        assert simplify_list_criteria("  all of the  ") == "all of the"


class TestFilterContacts:

    @pytest.mark.parametrize("criteria,field", [
        ("Finance", "businessSector"),
        ("Shadyside", "address"),
        ("Acme", "company"),
    ])
    def test_infer_filter_field(self, criteria, field):
        assert infer_filter_field(criteria) == field

    def test_substring_filter(self, store):
        contacts = run(filter_contacts_by_field(store, "address", "shadyside"))
        assert [c["id"] for c in contacts] == ["c1"]

    def test_unknown_field(self, store):
        with pytest.raises(ValueError):
            run(filter_contacts_by_field(store, "zipCode", "15232"))

    def test_summary(self, store):
        contact = run(store.get("contacts", "c3"))
        summary = summarize_contact(contact)
        assert summary["name"] == "Bob Jones"
        assert summary["phone"] is None
        assert summary["company"] == "Steel Works"
