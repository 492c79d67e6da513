from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from .accounts.mysql_profile_repository import MySQLProfileRepository
from .accounts.repository import ProfileRepository
from .accounts.service import AccountService, AuthService
from .affiliates.service import AffiliateService
from .brokers.mysql_broker_repository import MySQLBrokerRepository
from .brokers.repository import BrokerRepository
from .brokers.service import BrokerService
from .catalog.mysql_product_repository import MySQLProductRepository
from .catalog.repository import ProductRepository
from .catalog.service import CatalogService
from .database.connection import DBConfig, DatabaseConnection
from .ib.mysql_ib_repository import MySQLIbMembershipRepository
from .ib.repository import IbMembershipRepository
from .ib.service import IbService
from .licenses.mysql_license_repository import MySQLLicenseRepository
from .licenses.repository import LicenseRepository
from .licenses.service import LicenseService, LicenseVerifier
from .orders.mysql_order_repository import MySQLOrderRepository
from .orders.repository import OrderRepository
from .orders.service import OrderService
from .payments.mysql_payment_repository import MySQLPaymentSettingsRepository
from .payments.repository import PaymentSettingsRepository
from .payments.service import PaymentService
from .reports.service import ReportService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    profiles_repo: ProfileRepository
    products_repo: ProductRepository
    orders_repo: OrderRepository
    licenses_repo: LicenseRepository
    brokers_repo: BrokerRepository
    memberships_repo: IbMembershipRepository
    payment_settings_repo: PaymentSettingsRepository

    auth_service: AuthService
    account_service: AccountService
    catalog_service: CatalogService
    order_service: OrderService
    license_service: LicenseService
    license_verifier: LicenseVerifier
    broker_service: BrokerService
    ib_service: IbService
    affiliate_service: AffiliateService
    payment_service: PaymentService
    report_service: ReportService


def wire_services(
    *,
    conn: Optional[DatabaseConnection],
    profiles_repo: ProfileRepository,
    products_repo: ProductRepository,
    orders_repo: OrderRepository,
    licenses_repo: LicenseRepository,
    brokers_repo: BrokerRepository,
    memberships_repo: IbMembershipRepository,
    payment_settings_repo: PaymentSettingsRepository,
    license_api_key: str = "",
    root_admin_emails: Iterable[str] = (),
    site_url: str = "",
) -> Container:
    """Build every service on top of the given repositories."""
    affiliate_service = AffiliateService(profiles_repo, site_url=site_url)

    return Container(
        conn=conn,
        profiles_repo=profiles_repo,
        products_repo=products_repo,
        orders_repo=orders_repo,
        licenses_repo=licenses_repo,
        brokers_repo=brokers_repo,
        memberships_repo=memberships_repo,
        payment_settings_repo=payment_settings_repo,
        auth_service=AuthService(profiles_repo),
        account_service=AccountService(profiles_repo, orders_repo, licenses_repo),
        catalog_service=CatalogService(products_repo),
        order_service=OrderService(orders_repo, products_repo, licenses_repo, affiliate_service),
        license_service=LicenseService(licenses_repo),
        license_verifier=LicenseVerifier(licenses_repo, products_repo, api_key=license_api_key),
        broker_service=BrokerService(brokers_repo),
        ib_service=IbService(memberships_repo, brokers_repo, profiles_repo, root_admin_emails=root_admin_emails),
        affiliate_service=affiliate_service,
        payment_service=PaymentService(payment_settings_repo),
        report_service=ReportService(products_repo, orders_repo, licenses_repo),
    )


def build_container(
    *,
    db_config: dict,
    license_api_key: str = "",
    root_admin_emails: Iterable[str] = (),
    site_url: str = "",
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return wire_services(
        conn=conn,
        profiles_repo=MySQLProfileRepository(conn),
        products_repo=MySQLProductRepository(conn),
        orders_repo=MySQLOrderRepository(conn),
        licenses_repo=MySQLLicenseRepository(conn),
        brokers_repo=MySQLBrokerRepository(conn),
        memberships_repo=MySQLIbMembershipRepository(conn),
        payment_settings_repo=MySQLPaymentSettingsRepository(conn),
        license_api_key=license_api_key,
        root_admin_emails=root_admin_emails,
        site_url=site_url,
    )
