"""
Transaction/Census Pipeline

Orchestrates the batch run end to end:

1. Clean transactions
2. Clean census
3. Build the country's dimensional model
4. Materialize the joined analytical table
5. Validate every produced relation
6. Persist to the reporting database
7. Export files and exploration summaries
"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import polars as pl
import structlog
from sqlalchemy.engine import Engine

from transaction_census.analysis import (
    census_characteristics,
    census_topics,
    customer_segmentation,
    monthly_sales_trend,
    population_summary,
    product_performance,
)
from transaction_census.config import get_settings
from transaction_census.database import WarehouseWriter, close_database, init_database
from transaction_census.export import ExportFormat, RelationExporter, build_modeling_frame
from transaction_census.ingestion import SourceLoader
from transaction_census.quality.validators import (
    DataValidator,
    ValidationResult,
    ValidationStatus,
    create_cleaned_transactions_validator,
    create_census_validator,
    create_customers_validator,
    create_invoices_validator,
    create_joined_validator,
    create_line_items_validator,
    create_products_validator,
)
from transaction_census.transformation import (
    CensusCleaner,
    CleaningStats,
    DimensionalBuilder,
    DimensionalModel,
    JoinMaterializer,
    RepresentativePolicy,
    TransactionCleaner,
)

logger = structlog.get_logger(__name__)
settings = get_settings()


@dataclass
class StageResult:
    """Timing and row counts of one pipeline stage"""
    name: str
    input_rows: int
    output_rows: int
    started_at: datetime
    completed_at: datetime
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def duration_seconds(self) -> float:
        return (self.completed_at - self.started_at).total_seconds()


@dataclass
class PipelineResult:
    """Everything one run produced"""
    country: str
    started_at: datetime
    cleaned_transactions: pl.DataFrame
    cleaning_stats: CleaningStats
    census: pl.DataFrame
    model: DimensionalModel
    joined: pl.DataFrame
    stages: List[StageResult] = field(default_factory=list)
    validation: Dict[str, ValidationResult] = field(default_factory=dict)
    persisted: Dict[str, int] = field(default_factory=dict)
    outputs: Dict[str, str] = field(default_factory=dict)
    summaries: Dict[str, Any] = field(default_factory=dict)
    completed_at: Optional[datetime] = None

    @property
    def duration_seconds(self) -> float:
        if self.completed_at is None:
            return 0.0
        return (self.completed_at - self.started_at).total_seconds()

    @property
    def row_counts(self) -> Dict[str, int]:
        counts = {
            "cleaned_transactions": len(self.cleaned_transactions),
            "cleaned_census": len(self.census),
            "joined_data": len(self.joined),
        }
        counts.update(self.model.row_counts)
        return counts


class TransactionCensusPipeline:
    """
    Runs cleaning, modeling, joining, validation, persistence and export.

    Example:
        pipeline = TransactionCensusPipeline(country="Canada")
        result = pipeline.run_from_files("online_retail.csv", "census.csv")
        print(result.row_counts)
    """

    def __init__(
        self,
        country: Optional[str] = None,
        census_country: Optional[str] = None,
        engine: Optional[Engine] = None,
        database_url: Optional[str] = None,
        persist: Optional[bool] = None,
        export: bool = True,
        export_format: Optional[Union[ExportFormat, str]] = None,
        output_path: Optional[Union[str, Path]] = None,
        policy: Optional[Union[RepresentativePolicy, str]] = None,
        fail_on_validation_error: Optional[bool] = None,
    ):
        self.country = country or settings.pipeline.country
        self.census_country = census_country or settings.pipeline.census_country
        self.engine = engine
        self.database_url = database_url
        self.persist = settings.pipeline.persist if persist is None else persist
        self.export = export
        self.export_format = ExportFormat(export_format or settings.data_lake.default_format)
        self.output_path = output_path
        self.fail_on_validation_error = (
            settings.pipeline.fail_on_validation_error
            if fail_on_validation_error is None
            else fail_on_validation_error
        )

        self.transaction_cleaner = TransactionCleaner()
        self.census_cleaner = CensusCleaner(country=self.census_country)
        self.builder = DimensionalBuilder(country=self.country, policy=policy)
        self.materializer = JoinMaterializer()

    def _stage(
        self,
        name: str,
        input_rows: int,
        output_rows: int,
        started_at: datetime,
        **details: Any,
    ) -> StageResult:
        stage = StageResult(
            name=name,
            input_rows=input_rows,
            output_rows=output_rows,
            started_at=started_at,
            completed_at=datetime.utcnow(),
            details=details,
        )
        logger.info(
            "Stage completed",
            stage=name,
            input_rows=input_rows,
            output_rows=output_rows,
            duration_seconds=stage.duration_seconds,
            **details,
        )
        return stage

    def _validators(self, result: PipelineResult) -> Dict[str, DataValidator]:
        model = result.model
        return {
            "cleaned_transactions": create_cleaned_transactions_validator(),
            "customers": create_customers_validator(),
            "products": create_products_validator(),
            "invoices": create_invoices_validator(model.customers),
            "invoice_details": create_line_items_validator(model.invoices, model.products),
            "joined_data": create_joined_validator(len(model.line_items)),
            "cleaned_census": create_census_validator(),
        }

    def _relations(self, result: PipelineResult) -> Dict[str, pl.DataFrame]:
        return {
            "cleaned_transactions": result.cleaned_transactions,
            "customers": result.model.customers,
            "products": result.model.products,
            "invoices": result.model.invoices,
            "invoice_details": result.model.line_items,
            "joined_data": result.joined,
            "cleaned_census": result.census,
        }

    def validate(self, result: PipelineResult) -> Dict[str, ValidationResult]:
        """
        Validate every produced relation.

        Raises:
            DataQualityError: On a failed ERROR-level check when
                fail_on_validation_error is set
        """
        relations = self._relations(result)
        outcomes = {}
        for name, validator in self._validators(result).items():
            if self.fail_on_validation_error:
                outcomes[name] = validator.validate_or_raise(relations[name])
            else:
                outcomes[name] = validator.validate(relations[name])
                if outcomes[name].status == ValidationStatus.FAILED:
                    logger.warning(
                        "Validation failed, continuing",
                        relation=name,
                        failed_checks=[c.name for c in outcomes[name].failures],
                    )
        return outcomes

    def _persist(self, result: PipelineResult) -> Dict[str, int]:
        owns_engine = self.engine is None
        engine = self.engine or init_database(self.database_url)
        try:
            writer = WarehouseWriter(engine)
            writer.reset_country(self.country)
            writer.reset_census(self.census_country)
            persisted = writer.write_model(result.model)
            persisted["joined_data"] = writer.write_joined(result.joined)
            persisted["cleaned_census"] = writer.write_census(result.census)
        finally:
            if owns_engine:
                close_database()
        return persisted

    def _export(self, result: PipelineResult) -> Dict[str, str]:
        exporter = RelationExporter(output_path=self.output_path, default_format=self.export_format)
        return {
            "joined_data": exporter.export(result.joined, "joined_data"),
            "cleaned_census": exporter.export(result.census, "cleaned_census"),
            "modeling_dataset": exporter.export(build_modeling_frame(result.joined), "modeling_dataset"),
        }

    def _explore(self, result: PipelineResult) -> Dict[str, Any]:
        return {
            "customer_segmentation": customer_segmentation(result.joined),
            "product_performance": product_performance(result.joined),
            "monthly_sales_trend": monthly_sales_trend(result.joined),
            "census_topics": census_topics(result.census),
            "census_characteristics": census_characteristics(result.census),
            "population_summary": population_summary(result.census),
        }

    def run(self, transactions: pl.DataFrame, census: pl.DataFrame) -> PipelineResult:
        """
        Run every stage over already loaded source relations.

        Args:
            transactions: Raw transaction relation
            census: Raw census relation

        Returns:
            PipelineResult with the produced relations, stage timings and outputs
        """
        started_at = datetime.utcnow()
        stages: List[StageResult] = []
        logger.info(
            "Pipeline started",
            country=self.country,
            transactions=len(transactions),
            census=len(census),
        )

        stage_start = datetime.utcnow()
        cleaned, stats = self.transaction_cleaner.clean(transactions)
        stages.append(self._stage(
            "clean_transactions", len(transactions), len(cleaned), stage_start,
            nulls_filled=stats.nulls_filled, duplicates_removed=stats.duplicates_removed,
        ))

        stage_start = datetime.utcnow()
        cleaned_census = self.census_cleaner.clean(census)
        stages.append(self._stage("clean_census", len(census), len(cleaned_census), stage_start))

        stage_start = datetime.utcnow()
        model = self.builder.build(cleaned)
        stages.append(self._stage(
            "build_model", len(cleaned), len(model.line_items), stage_start, **model.row_counts
        ))

        stage_start = datetime.utcnow()
        joined = self.materializer.materialize(model)
        stages.append(self._stage("materialize_join", len(model.line_items), len(joined), stage_start))

        result = PipelineResult(
            country=self.country,
            started_at=started_at,
            cleaned_transactions=cleaned,
            cleaning_stats=stats,
            census=cleaned_census,
            model=model,
            joined=joined,
            stages=stages,
        )

        stage_start = datetime.utcnow()
        result.validation = self.validate(result)
        stages.append(self._stage(
            "validate", len(joined), len(joined), stage_start,
            failed=[name for name, v in result.validation.items() if v.status == ValidationStatus.FAILED],
        ))

        if self.persist:
            stage_start = datetime.utcnow()
            result.persisted = self._persist(result)
            stages.append(self._stage(
                "persist", len(joined), sum(result.persisted.values()), stage_start
            ))

        if self.export:
            stage_start = datetime.utcnow()
            result.outputs = self._export(result)
            stages.append(self._stage("export", len(joined), len(joined), stage_start))

        result.summaries = self._explore(result)
        result.completed_at = datetime.utcnow()

        logger.info(
            "Pipeline completed",
            country=self.country,
            duration_seconds=result.duration_seconds,
            **result.row_counts,
        )
        return result

    def run_from_files(
        self,
        transactions_path: Union[str, Path],
        census_path: Union[str, Path],
    ) -> PipelineResult:
        """Load both source files, then run"""
        loader = SourceLoader()
        transactions = loader.load_transactions(transactions_path)
        census = loader.load_census(census_path)
        return self.run(transactions, census)
