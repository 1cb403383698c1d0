from .object_store import ObjectStoreGateway, GCSObjectStore, build_object_store
