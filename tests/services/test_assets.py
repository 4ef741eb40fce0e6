from unittest.mock import MagicMock

import pytest

from assetmint.core.exceptions import AssetNotFoundError, ConfigurationError, TransientIOError
from assetmint.models.collection import Creator, RoyaltyConfig
from assetmint.models.upload import UploadRequest
from assetmint.services.assets import (
    AssetReceipt,
    AssetRecord,
    AssetService,
    AssetTransactionBuilder,
    ComputeBudget,
    load_builder_factory,
)


class RecordingBuilder(AssetTransactionBuilder):
    def __init__(self, identity=None, records=None):
        super().__init__(identity)
        self.records = records or {}
        self.built = []

    def _record(self, kind, *args):
        self.built.append((kind,) + args)
        return len(self.built)

    def build(self, name, uri, collection=None, compute_budget=None):
        return self._record("asset", name, uri, collection, compute_budget)

    def build_collection(self, name, uri, royalties=None, compute_budget=None):
        return self._record("collection", name, uri, royalties, compute_budget)

    def build_asset_update(self, address, name, uri, collection=None, compute_budget=None):
        return self._record("update_asset", address, name, uri, collection, compute_budget)

    def build_collection_update(self, address, name, uri, compute_budget=None):
        return self._record("update_collection", address, name, uri, compute_budget)

    def fetch(self, address):
        return self.records.get(address)

    def submit(self, handle):
        return AssetReceipt(address=f"asset{handle}", signature=f"sig{handle}")


class TestComputeBudget:
    def test_both_set(self):
        assert ComputeBudget(price=1000, units=200000).instructions() == [
            ("set_compute_unit_price", 1000),
            ("set_compute_unit_limit", 200000),
        ]

    def test_either_alone(self):
        assert ComputeBudget(price=5).instructions() == [("set_compute_unit_price", 5)]
        assert ComputeBudget(units=10).instructions() == [("set_compute_unit_limit", 10)]

    def test_non_positive_values_ignored(self):
        assert ComputeBudget(price=0, units=-1).instructions() == []


class TestAssetService:
    """Upload then mint"""

    def test_create_asset(self):
        builder = RecordingBuilder()
        budget = ComputeBudget(price=10)

        receipt = AssetService(builder).create_asset("Asset", "https://x/1", collection="coll", compute=budget)

        assert receipt.to_dict() == {"address": "asset1", "signature": "sig1"}
        assert builder.built == [("asset", "Asset", "https://x/1", "coll", budget)]

    def test_create_asset_from_upload(self, fake_backend, make_files):
        builder = RecordingBuilder()
        path = make_files(1)[0]

        AssetService(builder, backend=fake_backend).create_asset_from_upload("Asset", UploadRequest(file_path=path))

        uri = builder.built[0][2]
        assert uri == f"https://storage.test/{fake_backend.calls[0].unique_name}"

    def test_upload_errors_propagate(self, backend_factory, make_files):
        path = make_files(1)[0]
        builder = RecordingBuilder()
        service = AssetService(builder, backend=backend_factory(fail_names={"image_0.png"}))

        with pytest.raises(TransientIOError, match="backend rejected"):
            service.create_asset_from_upload("Asset", UploadRequest(file_path=path))
        assert builder.built == []

    def test_empty_uri_rejected(self, make_files):
        backend = MagicMock()
        backend.upload.return_value = ""
        service = AssetService(RecordingBuilder(), backend=backend)

        with pytest.raises(TransientIOError, match="No URI returned"):
            service.upload(UploadRequest(file_path=make_files(1)[0]))

    def test_upload_without_backend(self):
        with pytest.raises(ConfigurationError):
            AssetService(RecordingBuilder()).upload(UploadRequest(file_path="a.png"))


class TestCollections:
    """Collection creation with royalty enforcement"""

    def test_create_collection_without_royalties(self):
        builder = RecordingBuilder()

        receipt = AssetService(builder).create_collection("Coll", "https://x/c")

        assert receipt.address == "asset1"
        assert builder.built == [("collection", "Coll", "https://x/c", None, None)]

    def test_royalty_authority_defaults_to_identity(self, keypair):
        builder = RecordingBuilder(identity=keypair)
        royalties = RoyaltyConfig(basis_points=500, creators=[Creator(address="A", percentage=100)])

        AssetService(builder).create_collection("Coll", "https://x/c", royalties=royalties)

        sent = builder.built[0][3]
        assert sent.authority == keypair.public_key
        assert sent.basis_points == 500
        assert royalties.authority is None

    def test_explicit_authority_kept(self, keypair):
        builder = RecordingBuilder(identity=keypair)
        royalties = RoyaltyConfig(creators=[Creator(address="A", percentage=100)], authority="Auth")

        AssetService(builder).create_collection("Coll", "https://x/c", royalties=royalties)

        assert builder.built[0][3].authority == "Auth"

    def test_create_collection_from_upload(self, fake_backend, make_files):
        builder = RecordingBuilder()
        budget = ComputeBudget(units=300000)
        service = AssetService(builder, backend=fake_backend)

        service.create_collection_from_upload("Coll", UploadRequest(file_path=make_files(1)[0]), compute=budget)

        kind, name, uri, _, compute = builder.built[0]
        assert (kind, name, compute) == ("collection", "Coll", budget)
        assert uri == f"https://storage.test/{fake_backend.calls[0].unique_name}"

    def test_failed_upload_creates_no_collection(self, backend_factory, make_files):
        builder = RecordingBuilder()
        service = AssetService(builder, backend=backend_factory(fail_names={"image_0.png"}))

        with pytest.raises(TransientIOError):
            service.create_collection_from_upload("Coll", UploadRequest(file_path=make_files(1)[0]))
        assert builder.built == []


class TestUpdates:
    """Updates fall back to the current on-chain values"""

    RECORDS = {
        "Asset1": AssetRecord(address="Asset1", name="Old", uri="https://x/old"),
        "Coll1": AssetRecord(address="Coll1", name="Old Coll", uri="https://x/old-coll"),
    }

    def test_update_asset_name_only(self):
        builder = RecordingBuilder(records=self.RECORDS)

        receipt = AssetService(builder).update_asset("Asset1", new_name="New", collection="Coll1")

        assert builder.built == [("update_asset", "Asset1", "New", "https://x/old", "Coll1", None)]
        assert receipt.to_dict() == {"address": "Asset1", "signature": "sig1"}

    def test_update_asset_uri_only(self):
        builder = RecordingBuilder(records=self.RECORDS)

        AssetService(builder).update_asset("Asset1", new_uri="https://x/new")

        assert builder.built[0][2:4] == ("Old", "https://x/new")

    def test_update_collection(self):
        builder = RecordingBuilder(records=self.RECORDS)
        budget = ComputeBudget(price=1)

        receipt = AssetService(builder).update_collection("Coll1", new_uri="https://x/new", compute=budget)

        assert builder.built == [("update_collection", "Coll1", "Old Coll", "https://x/new", budget)]
        assert receipt.address == "Coll1"

    def test_missing_asset(self):
        builder = RecordingBuilder()
        with pytest.raises(AssetNotFoundError, match="asset Nope not found"):
            AssetService(builder).update_asset("Nope", new_name="New")
        assert builder.built == []

    def test_missing_collection(self):
        with pytest.raises(AssetNotFoundError, match="collection Nope not found"):
            AssetService(RecordingBuilder()).update_collection("Nope", new_name="New")


class TestLoadBuilderFactory:
    def test_loads_module_attribute(self):
        assert load_builder_factory("assetmint.services.assets:AssetService") is AssetService

    @pytest.mark.parametrize("path", ["assetmint.services.assets", ":factory", "module:"])
    def test_malformed_path(self, path):
        with pytest.raises(ConfigurationError, match="package.module:factory"):
            load_builder_factory(path)

    def test_missing_module(self):
        with pytest.raises(ConfigurationError, match="Could not load asset builder"):
            load_builder_factory("assetmint.no_such_module:factory")

    def test_missing_attribute(self):
        with pytest.raises(ConfigurationError, match="Could not load asset builder"):
            load_builder_factory("assetmint.services.assets:no_such_factory")
