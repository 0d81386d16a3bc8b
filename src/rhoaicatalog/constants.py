"""Fixed names shared by the catalog builder services."""

PACKAGE_NAME = "rhods-operator"
CATALOG_CHANNEL = "fast"

OPERATOR_REPOSITORY = "rhods-operator"
BUNDLE_REPOSITORY = "odh-operator-bundle"
CATALOG_REPOSITORY = "opendatahub-operator-catalog"

DEFAULT_IMAGE_BUILDER = "podman"
IMAGE_PLATFORM = "linux/amd64"

BUNDLE_PATHS = ("/manifests", "/metadata")
CSV_PATTERNS = ("*clusterserviceversion.yaml", "*clusterserviceversion.yml")
RELATED_IMAGE_PREFIX = "RELATED_IMAGE"

BUNDLE_LABELS = (
    ("operators.operatorframework.io.bundle.mediatype.v1", "registry+v1"),
    ("operators.operatorframework.io.bundle.manifests.v1", "manifests/"),
    ("operators.operatorframework.io.bundle.metadata.v1", "metadata/"),
    ("operators.operatorframework.io.bundle.package.v1", PACKAGE_NAME),
    ("operators.operatorframework.io.bundle.channels.v1", "alpha,stable,fast"),
    ("operators.operatorframework.io.bundle.channel.default.v1", "stable"),
)

SCHEMA_PACKAGE = "olm.package"
SCHEMA_BUNDLE = "olm.bundle"
SCHEMA_CHANNEL = "olm.channel"

CATALOG_DIR = "catalog"
CATALOG_FILE = "catalog.yaml"
CATALOG_DOCKERFILE = "Dockerfiles/catalog.Dockerfile"
REPO_MARKER_FILES = ("Makefile", "get_all_manifests.sh")

REVISION_LABEL = "org.opencontainers.image.revision"
