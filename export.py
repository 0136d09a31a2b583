"""Export of railway designs: RailML JSON, validation reports and text summaries."""
import json
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Any

from loguru import logger

from design_stats import generate_text_summary
from railml_builder import RailMLBuilder
from railml_schema import RailMLValidator, ValidationResult, generate_validation_report
from scene import Scene


class ExportError(Exception):
    """Custom exception for export failures."""
    pass


class DesignExporter:
    """Serialize railway designs and write them to an output directory."""

    def __init__(self, output_dir: str = "exports", builder: Optional[RailMLBuilder] = None):
        """Initialize exporter with output directory.

        Args:
            output_dir: Directory receiving exported files (created if missing)
            builder: Document builder; a default one is created when omitted
        """
        self.output_dir = Path(output_dir)
        self.builder = builder or RailMLBuilder()
        self.validator: RailMLValidator = self.builder.validator
        self.indent = 2

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Cannot create export directory {self.output_dir}: {str(e)}")
            raise ExportError(f"Cannot create export directory: {str(e)}") from e

        logger.info(f"Design exporter initialized with output dir: {output_dir}")

    def generate_timestamp_filename(self, base_filename: str) -> str:
        """Generate timestamp-based filename to prevent duplicates.

        Returns:
            str: Filename of the form railway_export_[YYYYMMDD]_[HHMMSS]_[base]
        """
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        clean_base = base_filename.replace("/", "_").replace(" ", "_")
        return f"railway_export_{timestamp}_{clean_base}"

    def to_json(self, document: Dict[str, Any]) -> str:
        return json.dumps(document, indent=self.indent, ensure_ascii=False)

    def export(self, scene: Scene, filename: str, format_type: str = 'railml',
               options: Optional[Dict[str, Any]] = None) -> str:
        """Export a scene in the requested format.

        Args:
            scene: Scene to export
            filename: Output filename without extension
            format_type: 'railml', 'report' or 'txt'
            options: Document build options (see ``RailMLBuilder.build_document``)

        Returns:
            str: Path of the written file

        Raises:
            ExportError: If the format is unknown or writing fails
        """
        format_type = format_type.lower()

        if format_type == 'railml':
            output_path = self.export_railml(scene, filename, options)
        elif format_type == 'report':
            document = self.builder.build_document(scene, dict(options or {}, validate=False))
            result = self.validator.validate_document(document)
            output_path = self.export_validation_report(result, filename)
        elif format_type == 'txt':
            options = options or {}
            output_path = self.export_text_summary(
                scene, filename,
                canvas_width=options.get('canvas_width'),
                canvas_height=options.get('canvas_height'),
            )
        else:
            raise ExportError(f"Unsupported format: {format_type}")

        logger.info(f"Exported {filename} to {format_type.upper()} format")
        return str(output_path)

    def export_railml(self, scene: Scene, filename: str, options: Optional[Dict[str, Any]] = None) -> Path:
        document = self.builder.build_document(scene, options)
        return self._write(f"{filename}.railml.json", self.to_json(document))

    def export_validation_report(self, result: ValidationResult, filename: str) -> Path:
        return self._write(f"{filename}-validation-report.txt", generate_validation_report(result))

    def export_text_summary(self, scene: Scene, filename: str,
                            canvas_width: Optional[int] = None,
                            canvas_height: Optional[int] = None) -> Path:
        kwargs = {}
        if canvas_width is not None:
            kwargs['canvas_width'] = canvas_width
        if canvas_height is not None:
            kwargs['canvas_height'] = canvas_height
        return self._write(f"{filename}.txt", generate_text_summary(scene, **kwargs))

    def export_railml_with_report(self, scene: Scene, filename: str,
                                  options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Write the RailML document and its validation report side by side.

        Returns:
            Dict with ``railml_file``, ``report_file`` and the ``validation`` result
        """
        options = options or {}
        document = self.builder.build_document(scene, dict(options, validate=False))
        result = self.validator.validate_document(document)
        if options.get('validate') is not False:
            document['railml']['metadata']['validationResult'] = result.to_dict()

        railml_file = self._write(f"{filename}.railml.json", self.to_json(document))
        report_file = self.export_validation_report(result, filename)

        return {'railml_file': str(railml_file), 'report_file': str(report_file), 'validation': result}

    def _write(self, name: str, content: str) -> Path:
        path = self.output_dir / name
        try:
            with open(path, 'w', encoding='utf-8') as f:
                f.write(content)
        except OSError as e:
            logger.error(f"Export error writing {path}: {str(e)}")
            raise ExportError(f"Failed to write {path}: {str(e)}") from e

        logger.debug(f"Wrote {path}")
        return path
