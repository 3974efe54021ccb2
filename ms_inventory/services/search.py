"""
Búsqueda federada

Un solo término recorre varias ramas (número de serie, datos sensibles y
beneficiarios, entidades generales), se unen los resultados, se ordenan por
prioridad de tipo y título, y recién entonces se pagina.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple
import enum
import logging
import math

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from ..config import settings
from ..models import (
    Asset, Assignment, Repair, RepairState,
    Product, Category, Employee, Sector, Branch,
)
from .errors import ValidationError
from .policies import PHONE, category_kind, sensitive_field_for

logger = logging.getLogger(__name__)


class SearchType(str, enum.Enum):
    GENERAL = "General"
    SERIAL_NUMBER = "SerialNumber"
    SENSITIVE = "Sensitive"


# Nombre heredado del tipo de búsqueda por datos sensibles
_SEARCH_TYPE_ALIASES = {
    "encryptionpassword": SearchType.SENSITIVE,
}


class ResultType(str, enum.Enum):
    ASSIGNMENT = "Assignment"
    ASSET = "Asset"
    REPAIR = "Repair"
    EMPLOYEE = "Employee"
    PRODUCT = "Product"
    SECTOR = "Sector"
    BRANCH = "Branch"


_TYPE_PRIORITY = {
    ResultType.ASSIGNMENT: 1,
    ResultType.ASSET: 2,
    ResultType.REPAIR: 3,
    ResultType.EMPLOYEE: 4,
    ResultType.PRODUCT: 5,
    ResultType.SECTOR: 6,
    ResultType.BRANCH: 7,
}
_OTHER_PRIORITY = 99


@dataclass
class SearchResult:
    result_type: ResultType
    item_id: int
    title: str
    description: str = ""
    status: Optional[str] = None
    date: Optional[datetime] = None
    entity_type: Optional[str] = None
    serial_number: Optional[str] = None
    sensitive_field: Optional[str] = None
    related_info: Optional[str] = None

    @property
    def sort_key(self) -> Tuple[int, str, str, int]:
        priority = _TYPE_PRIORITY.get(self.result_type, _OTHER_PRIORITY)
        title = self.title or ""
        return priority, title.casefold(), title, self.item_id


@dataclass
class SearchPage:
    results: List[SearchResult] = field(default_factory=list)
    total_count: int = 0
    page: int = 1
    page_size: int = 10
    total_pages: int = 0


def parse_search_type(value) -> SearchType:
    """Tipo de búsqueda; valores desconocidos caen en General"""
    if value is None or value == "":
        return SearchType.GENERAL
    if isinstance(value, SearchType):
        return value
    raw = str(value).strip()
    for search_type in SearchType:
        if search_type.value.casefold() == raw.casefold():
            return search_type
    if raw.casefold() in _SEARCH_TYPE_ALIASES:
        return _SEARCH_TYPE_ALIASES[raw.casefold()]
    logger.warning(f"Tipo de búsqueda desconocido '{raw}', se usa General")
    return SearchType.GENERAL


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _fmt_date(value: Optional[datetime]) -> str:
    return value.strftime("%d/%m/%Y") if value else "N/A"


def _sensitive_value(category_name: str, assignment: Optional[Assignment]) -> Optional[str]:
    if assignment is None:
        return None
    column = sensitive_field_for(category_name)
    return getattr(assignment, column) if column else None


class SearchService:
    """Búsqueda de solo lectura; no toma locks"""

    def __init__(self, db: Session):
        self.db = db

    def search(
        self,
        term: str,
        search_type=None,
        page: int = 1,
        page_size: Optional[int] = None,
    ) -> SearchPage:
        """
        Busca el término en todas las ramas habilitadas por el tipo de búsqueda

        Raises:
            ValidationError: término vacío o paginación fuera de rango
        """
        term = (term or "").strip()
        if not term:
            raise ValidationError("El término de búsqueda es requerido")
        page_size = page_size if page_size is not None else settings.SEARCH_DEFAULT_PAGE_SIZE
        if page < 1 or page_size < 1 or page_size > settings.SEARCH_MAX_PAGE_SIZE:
            raise ValidationError(
                "Parámetros de paginación inválidos",
                {"page": page, "page_size": page_size, "max_page_size": settings.SEARCH_MAX_PAGE_SIZE},
            )

        search_type = parse_search_type(search_type)
        pattern = _like_pattern(term)

        collected: List[SearchResult] = []
        if search_type in (SearchType.GENERAL, SearchType.SERIAL_NUMBER):
            collected.extend(self._serial_branch(pattern))
        if search_type in (SearchType.GENERAL, SearchType.SENSITIVE):
            collected.extend(self._sensitive_branch(pattern))
        if search_type is SearchType.GENERAL:
            collected.extend(self._employee_branch(pattern))
            collected.extend(self._product_branch(pattern))
            collected.extend(self._sector_branch(pattern))
            collected.extend(self._branch_branch(pattern))

        # Unión: un mismo (tipo, id) aparece una sola vez, gana la primera rama
        unique: Dict[Tuple[ResultType, int], SearchResult] = {}
        for result in collected:
            unique.setdefault((result.result_type, result.item_id), result)

        ordered = sorted(unique.values(), key=lambda result: result.sort_key)
        total = len(ordered)
        offset = (page - 1) * page_size

        logger.info(f"Búsqueda '{search_type.value}' devolvió {total} resultados")
        return SearchPage(
            results=ordered[offset:offset + page_size],
            total_count=total,
            page=page,
            page_size=page_size,
            total_pages=math.ceil(total / page_size),
        )

    # ------------------------------------------------------------------
    # Ramas
    # ------------------------------------------------------------------

    def _serial_branch(self, pattern: str) -> List[SearchResult]:
        assets = self.db.query(Asset).filter(
            Asset.serial_number.ilike(pattern, escape="\\")
        ).order_by(Asset.serial_number).limit(settings.SEARCH_LIMIT_SERIAL).all()
        if not assets:
            return []

        asset_ids = [asset.id for asset in assets]
        assignments = {
            assignment.asset_id: assignment
            for assignment in self.db.query(Assignment).options(
                joinedload(Assignment.employee),
                joinedload(Assignment.sector),
                joinedload(Assignment.branch),
            ).filter(
                Assignment.asset_id.in_(asset_ids),
                Assignment.is_active == True
            ).all()
        }
        repairs = {
            repair.asset_id: repair
            for repair in self.db.query(Repair).filter(
                Repair.asset_id.in_(asset_ids),
                Repair.state == RepairState.IN_REPAIR.value
            ).all()
        }

        results = []
        for asset in assets:
            category = asset.category_name
            assignment = assignments.get(asset.id)
            repair = repairs.get(asset.id)

            if assignment is not None:
                result_type, item_id = ResultType.ASSIGNMENT, assignment.id
                related = f"Assigned to: {assignment.destination_name}"
            elif repair is not None:
                result_type, item_id = ResultType.REPAIR, repair.id
                related = f"In repair at {repair.provider} since {_fmt_date(repair.shipped_at)}"
            else:
                result_type, item_id = ResultType.ASSET, asset.id
                related = None

            results.append(SearchResult(
                result_type=result_type,
                item_id=item_id,
                title=asset.product.display_name if asset.product else asset.serial_number,
                description=f"{category} - S/N: {asset.serial_number}",
                status=asset.state,
                date=asset.created_at,
                entity_type=category,
                serial_number=asset.serial_number,
                sensitive_field=_sensitive_value(category, assignment),
                related_info=related,
            ))
        return results

    def _sensitive_branch(self, pattern: str) -> List[SearchResult]:
        like = dict(escape="\\")
        full_name = Employee.first_name + " " + Employee.last_name
        rows = self.db.query(Assignment).join(
            Asset, Assignment.asset_id == Asset.id
        ).outerjoin(
            Employee, Assignment.employee_id == Employee.id
        ).outerjoin(
            Sector, Assignment.sector_id == Sector.id
        ).outerjoin(
            Branch, Assignment.branch_id == Branch.id
        ).options(
            joinedload(Assignment.asset),
            joinedload(Assignment.employee),
            joinedload(Assignment.sector),
            joinedload(Assignment.branch),
        ).filter(
            Assignment.is_active == True,
            or_(
                Assignment.disk_encryption_password.ilike(pattern, **like),
                Assignment.mail_account.ilike(pattern, **like),
                Assignment.mail_password.ilike(pattern, **like),
                Assignment.phone_number.ilike(pattern, **like),
                Assignment.two_factor_code.ilike(pattern, **like),
                Employee.first_name.ilike(pattern, **like),
                Employee.last_name.ilike(pattern, **like),
                full_name.ilike(pattern, **like),
                Sector.name.ilike(pattern, **like),
                Branch.name.ilike(pattern, **like),
            )
        ).order_by(Assignment.id).limit(settings.SEARCH_LIMIT_SENSITIVE).all()

        results = []
        for assignment in rows:
            asset = assignment.asset
            category = asset.category_name
            if assignment.employee is not None:
                title = f"Assigned to: {assignment.employee.full_name}"
            elif assignment.sector is not None:
                title = f"Assigned to sector: {assignment.sector.name}"
            else:
                title = f"Assigned to branch: {assignment.destination_name}"

            if category_kind(category) == PHONE:
                related = (
                    f"Mail: {assignment.mail_account or 'N/A'}, "
                    f"Phone: {assignment.phone_number or 'N/A'}, "
                    f"2FA: {assignment.two_factor_code or 'N/A'}"
                )
            else:
                related = f"Assigned on: {_fmt_date(assignment.assigned_at)}"

            product_name = asset.product.display_name if asset.product else ""
            results.append(SearchResult(
                result_type=ResultType.ASSIGNMENT,
                item_id=assignment.id,
                title=title,
                description=f"{product_name} - S/N: {asset.serial_number}",
                status="Assigned",
                date=assignment.assigned_at,
                entity_type=category,
                serial_number=asset.serial_number,
                sensitive_field=_sensitive_value(category, assignment),
                related_info=related,
            ))
        return results

    def _employee_branch(self, pattern: str) -> List[SearchResult]:
        like = dict(escape="\\")
        full_name = Employee.first_name + " " + Employee.last_name
        rows = self.db.query(Employee).filter(
            Employee.is_active == True,
            or_(
                Employee.first_name.ilike(pattern, **like),
                Employee.last_name.ilike(pattern, **like),
                full_name.ilike(pattern, **like),
                Employee.email.ilike(pattern, **like),
            )
        ).order_by(Employee.id).limit(settings.SEARCH_LIMIT_EMPLOYEES).all()
        return [
            SearchResult(
                result_type=ResultType.EMPLOYEE,
                item_id=employee.id,
                title=employee.full_name,
                description="Employee",
                status="Active",
                date=employee.created_at,
                entity_type="Employee",
                related_info=f"Email: {employee.email or 'N/A'}",
            )
            for employee in rows
        ]

    def _product_branch(self, pattern: str) -> List[SearchResult]:
        like = dict(escape="\\")
        rows = self.db.query(Product).join(
            Category, Product.category_id == Category.id
        ).filter(
            Product.is_active == True,
            or_(
                Product.brand.ilike(pattern, **like),
                Product.model.ilike(pattern, **like),
                Product.description.ilike(pattern, **like),
            )
        ).order_by(Product.id).limit(settings.SEARCH_LIMIT_PRODUCTS).all()
        return [
            SearchResult(
                result_type=ResultType.PRODUCT,
                item_id=product.id,
                title=product.display_name,
                description=product.description or "",
                status="Active",
                date=product.created_at,
                entity_type=product.category.name,
                related_info=f"Category: {product.category.name}",
            )
            for product in rows
        ]

    def _sector_branch(self, pattern: str) -> List[SearchResult]:
        rows = self.db.query(Sector).filter(
            Sector.is_active == True,
            Sector.name.ilike(pattern, escape="\\")
        ).order_by(Sector.id).limit(settings.SEARCH_LIMIT_SECTORS).all()
        return [
            SearchResult(
                result_type=ResultType.SECTOR,
                item_id=sector.id,
                title=sector.name,
                description="Sector",
                status="Active",
                entity_type="Sector",
            )
            for sector in rows
        ]

    def _branch_branch(self, pattern: str) -> List[SearchResult]:
        rows = self.db.query(Branch).filter(
            Branch.is_active == True,
            Branch.name.ilike(pattern, escape="\\")
        ).order_by(Branch.id).limit(settings.SEARCH_LIMIT_BRANCHES).all()
        return [
            SearchResult(
                result_type=ResultType.BRANCH,
                item_id=branch.id,
                title=branch.name,
                description="Branch",
                status="Active",
                entity_type="Branch",
            )
            for branch in rows
        ]
