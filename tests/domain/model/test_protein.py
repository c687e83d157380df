from __future__ import annotations

import pytest

from protrecon.domain.model import (
    Alias,
    AliasType,
    Annotation,
    AnnotationTopic,
    CrossReference,
    Database,
    DuplicateIdentityError,
    ProteinRecord,
    Qualifier,
    sequence_checksum,
)
from tests.helpers.records import feature_range, identity, make_record, participation


def test_checksum_is_derived_from_sequence() -> None:
    record = ProteinRecord(id="R1", short_label="r1", taxon_id="9606", sequence="mkta")

    assert record.checksum == sequence_checksum("MKTA")


def test_update_sequence_refreshes_checksum() -> None:
    record = make_record("R1", sequence="MKTA")

    record.update_sequence("MKTAA")

    assert record.sequence == "MKTAA"
    assert record.checksum == sequence_checksum("MKTAA")


def test_second_distinct_identity_is_rejected() -> None:
    record = make_record("R1", accessions=["P100"])

    with pytest.raises(DuplicateIdentityError):
        record.add_cross_reference(identity("P200"))


def test_identity_for_other_database_is_allowed() -> None:
    record = make_record("R1", accessions=["P100"])

    added = record.add_cross_reference(identity("EBI-1", database=Database.INTACT))

    assert added
    assert len(record.identity_references(Database.UNIPROTKB)) == 1
    assert len(record.identity_references(Database.INTACT)) == 1


def test_add_cross_reference_is_idempotent() -> None:
    record = make_record("R1", accessions=["P100"])

    assert not record.add_cross_reference(identity("P100"))
    assert len(record.cross_references) == 1


def test_replace_cross_reference_keeps_position() -> None:
    record = make_record("R1", accessions=["P100"])
    go = CrossReference(database="go", identifier="GO:0005515")
    record.add_cross_reference(go)
    original = record.cross_references[0]

    record.replace_cross_reference(original, original.requalified(Qualifier.SECONDARY))

    assert record.cross_references[0].qualifier == Qualifier.SECONDARY
    assert record.cross_references[1] == go


def test_annotation_lookup_ignores_text_case() -> None:
    record = make_record("R1")
    record.add_annotation(Annotation(topic=AnnotationTopic.CAUTION, text="Withdrawn"))

    assert record.has_annotation(AnnotationTopic.CAUTION, "withdrawn")
    assert not record.add_annotation(Annotation(topic=AnnotationTopic.CAUTION, text="WITHDRAWN"))


def test_no_update_annotation_blocks_updates() -> None:
    record = make_record("R1")
    assert not record.is_update_blocked

    record.add_annotation(Annotation(topic=AnnotationTopic.NO_UNIPROT_UPDATE))

    assert record.is_update_blocked


def test_snapshot_is_a_frozen_copy() -> None:
    record = make_record("R1", accessions=["P100"])
    snapshot = record.snapshot()

    record.add_alias(Alias(type=AliasType.GENE_NAME, name="BRCA2"))

    assert snapshot.aliases == ()
    assert record.snapshot().aliases == (Alias(type=AliasType.GENE_NAME, name="BRCA2"),)


def test_ranges_for_component() -> None:
    record = make_record(
        "R1",
        participations=[participation("I1", "C1"), participation("I2", "C2")],
        ranges=[
            feature_range("F1", 1, 3, component_id="C1"),
            feature_range("F2", 2, 4, component_id="C2", interaction_id="I2"),
        ],
    )

    assert [item.feature_id for item in record.ranges_for_component("C2")] == ["F2"]


def test_feature_range_determination() -> None:
    assert feature_range("F1", 1, 3).is_determined
    assert not feature_range("F1", None, 3).is_determined
    assert not feature_range("F1", 0, 3).is_determined
