"""Data models for analysis results, metadata, hashes and history entries."""

from dataclasses import asdict, dataclass, field
from typing import Optional

CATEGORY_NAMES = (
    "genai",
    "face_manipulation",
    "body_manipulation",
    "deepfake",
    "inpainting",
    "style_transfer",
)

MODEL_FAMILIES = ("diffusion", "gan", "llm", "manipulation", "other")

CATEGORY_LABELS = {
    "genai": "Generative AI",
    "face_manipulation": "Face Manipulation",
    "body_manipulation": "Body Manipulation",
    "deepfake": "Deepfake",
    "inpainting": "Inpainting",
    "style_transfer": "Style Transfer",
}


@dataclass
class ImageCharacteristics:
    """Cheap pixel statistics used to steer the mock analysis."""

    has_faces: bool = False
    has_text: bool = False
    color_complexity: float = 0.5
    edge_density: float = 0.5
    compression_level: float = 0.5
    width: int = 1920
    height: int = 1080

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Artifacts:
    compression: float = 0.0
    quantization: float = 0.0
    blocking: float = 0.0


@dataclass
class TechnicalDetails:
    """Low-level numbers shown in the technical details panel."""

    width: int
    height: int
    file_size: int
    color_depth: int
    compression_ratio: float
    entropy: float
    edge_density: float
    color_complexity: float
    has_faces: bool
    has_text: bool
    noise_level: float
    sharpness: float
    artifacts: Artifacts = field(default_factory=Artifacts)
    face_count: Optional[int] = None
    text_regions: Optional[int] = None
    metadata_anomalies: list[str] = field(default_factory=list)
    processing_history: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = {
            "image_dimensions": {"width": self.width, "height": self.height},
            "file_size": self.file_size,
            "color_depth": self.color_depth,
            "compression_ratio": self.compression_ratio,
            "entropy": self.entropy,
            "edge_density": self.edge_density,
            "color_complexity": self.color_complexity,
            "has_faces": self.has_faces,
            "has_text": self.has_text,
            "noise_level": self.noise_level,
            "sharpness": self.sharpness,
            "artifacts": asdict(self.artifacts),
            "metadata_anomalies": list(self.metadata_anomalies),
            "processing_history": list(self.processing_history),
        }
        if self.face_count is not None:
            data["face_count"] = self.face_count
        if self.text_regions is not None:
            data["text_regions"] = self.text_regions
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "TechnicalDetails":
        dims = data.get("image_dimensions", {})
        return cls(
            width=dims.get("width", 0),
            height=dims.get("height", 0),
            file_size=data.get("file_size", 0),
            color_depth=data.get("color_depth", 24),
            compression_ratio=data.get("compression_ratio", 0.0),
            entropy=data.get("entropy", 0.0),
            edge_density=data.get("edge_density", 0.0),
            color_complexity=data.get("color_complexity", 0.0),
            has_faces=data.get("has_faces", False),
            has_text=data.get("has_text", False),
            noise_level=data.get("noise_level", 0.0),
            sharpness=data.get("sharpness", 0.0),
            artifacts=Artifacts(**data.get("artifacts", {})),
            face_count=data.get("face_count"),
            text_regions=data.get("text_regions"),
            metadata_anomalies=list(data.get("metadata_anomalies", [])),
            processing_history=list(data.get("processing_history", [])),
        )


@dataclass
class AnalysisResult:
    """AI-generation likelihood scores, all expressed as 0-100 percentages."""

    overall: int = 0
    categories: dict[str, int] = field(
        default_factory=lambda: {name: 0 for name in CATEGORY_NAMES}
    )
    diffusion: dict[str, int] = field(default_factory=dict)
    gan: dict[str, int] = field(default_factory=dict)
    llm: dict[str, int] = field(default_factory=dict)
    manipulation: dict[str, int] = field(default_factory=dict)
    other: dict[str, int] = field(default_factory=dict)
    technical_details: Optional[TechnicalDetails] = None
    provider: str = "mock"

    def families(self) -> dict[str, dict[str, int]]:
        """Per-family model scores, keyed by family name."""
        return {name: getattr(self, name) for name in MODEL_FAMILIES}

    def to_dict(self) -> dict:
        data = {
            "overall": self.overall,
            "categories": dict(self.categories),
            "diffusion": dict(self.diffusion),
            "gan": dict(self.gan),
            "llm": dict(self.llm),
            "manipulation": dict(self.manipulation),
            "other": dict(self.other),
            "provider": self.provider,
        }
        if self.technical_details is not None:
            data["technical_details"] = self.technical_details.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "AnalysisResult":
        categories = {name: 0 for name in CATEGORY_NAMES}
        categories.update(data.get("categories", {}))
        details = data.get("technical_details")
        return cls(
            overall=data.get("overall", 0),
            categories=categories,
            diffusion=dict(data.get("diffusion", {})),
            gan=dict(data.get("gan", {})),
            llm=dict(data.get("llm", {})),
            manipulation=dict(data.get("manipulation", {})),
            other=dict(data.get("other", {})),
            technical_details=TechnicalDetails.from_dict(details) if details else None,
            provider=data.get("provider", "mock"),
        )


@dataclass
class MetadataResult:
    """EXIF fields of interest. Missing fields stay None."""

    make: Optional[str] = None
    model: Optional[str] = None
    date: Optional[str] = None  # ISO-8601
    gps: Optional[str] = None  # "lat, lon"
    width: Optional[int] = None
    height: Optional[int] = None
    orientation: Optional[int] = None
    software: Optional[str] = None
    artist: Optional[str] = None
    copyright: Optional[str] = None
    iso: Optional[int] = None
    f_number: Optional[float] = None
    exposure_time: Optional[float] = None
    focal_length: Optional[float] = None

    def is_empty(self) -> bool:
        return not self.to_dict()

    @property
    def camera(self) -> str:
        return f"{self.make or ''} {self.model or ''}".strip()

    def to_dict(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v is not None}

    @classmethod
    def from_dict(cls, data: dict) -> "MetadataResult":
        known = cls.__dataclass_fields__
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class ImageHashes:
    md5: str
    sha256: str
    perceptual: Optional[str] = None

    def to_dict(self) -> dict:
        data = {"md5": self.md5, "sha256": self.sha256}
        if self.perceptual is not None:
            data["perceptual"] = self.perceptual
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ImageHashes":
        return cls(
            md5=data["md5"],
            sha256=data["sha256"],
            perceptual=data.get("perceptual"),
        )


@dataclass
class HistoryItem:
    """A saved analysis. id and timestamp are assigned by the history store."""

    file_name: str
    file_size: int
    analysis_result: AnalysisResult
    metadata: MetadataResult = field(default_factory=MetadataResult)
    hashes: Optional[ImageHashes] = None
    preview: Optional[str] = None  # data URL thumbnail
    notes: Optional[str] = None
    id: Optional[str] = None
    timestamp: Optional[int] = None  # milliseconds since epoch

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "file_name": self.file_name,
            "file_size": self.file_size,
            "preview": self.preview,
            "analysis_result": self.analysis_result.to_dict(),
            "metadata": self.metadata.to_dict(),
            "hashes": self.hashes.to_dict() if self.hashes else None,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "HistoryItem":
        hashes = data.get("hashes")
        return cls(
            id=data.get("id"),
            timestamp=data.get("timestamp"),
            file_name=data["file_name"],
            file_size=data["file_size"],
            preview=data.get("preview"),
            analysis_result=AnalysisResult.from_dict(data["analysis_result"]),
            metadata=MetadataResult.from_dict(data.get("metadata") or {}),
            hashes=ImageHashes.from_dict(hashes) if hashes else None,
            notes=data.get("notes"),
        )
