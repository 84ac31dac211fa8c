import logging
import math
from contextlib import contextmanager
from datetime import date, datetime, timedelta

import bcrypt
from sqlalchemy import create_engine, String, and_, or_, cast, func, select
from sqlalchemy.orm import sessionmaker, scoped_session

import config
import stats
from models import (
    Base, User, Stock, Activity, Site, Campaign, PcSpec, PcMaintenance, Station, PcTransfer,
    ItConcern, Employee, Attendance, AttendancePoint, LeaveRequest, SPEC_MODELS,
)
from seed_data import SEED_SPECS

logger = logging.getLogger("asset_panel.database")


# --- ERRORS ---
class ValidationError(Exception):
    """Field-keyed validation failure; `errors` maps field name -> message."""

    def __init__(self, errors):
        self.errors = dict(errors)
        super().__init__("; ".join(f"{k}: {v}" for k, v in self.errors.items()))


class NotFoundError(Exception):
    pass


# --- VALIDATION ---
def validate_fields(rules, payload, partial=False):
    """
    Checks `payload` against (field, label, type, required, minimum) rules.
    Returns the cleaned values; raises ValidationError with every failing field.
    With partial=True only the fields present in the payload are checked.
    """
    cleaned, errors = {}, {}
    for name, label, ftype, required, minimum in rules:
        if partial and name not in payload:
            continue
        value = payload.get(name)
        if isinstance(value, str):
            value = value.strip()
        if value is None or value == "":
            if required:
                errors[name] = f"{label} is required."
            else:
                cleaned[name] = None
            continue

        if ftype == "str":
            value = str(value)
            if len(value) > 255:
                errors[name] = f"{label} may not be greater than 255 characters."
                continue
        elif ftype == "int":
            try:
                number = float(value)
            except (TypeError, ValueError):
                errors[name] = f"{label} must be an integer."
                continue
            if not number.is_integer():
                errors[name] = f"{label} must be an integer."
                continue
            value = int(number)
        elif ftype == "float":
            try:
                value = float(value)
            except (TypeError, ValueError):
                errors[name] = f"{label} must be a number."
                continue
            if not math.isfinite(value):
                errors[name] = f"{label} must be a number."
                continue

        if minimum is not None and ftype in ("int", "float") and value < minimum:
            errors[name] = f"{label} must be at least {minimum}."
            continue
        cleaned[name] = value

    if errors:
        raise ValidationError(errors)
    return cleaned


def _jsonable(value):
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def _apply_changes(obj, data):
    """Sets attributes on `obj`; returns (old, new) dicts of the values that actually changed."""
    old, new = {}, {}
    for key, value in data.items():
        current = getattr(obj, key)
        if current != value:
            old[key] = _jsonable(current)
            new[key] = _jsonable(value)
            setattr(obj, key, value)
    return old, new


def _snapshot(obj, fields):
    return {f: _jsonable(getattr(obj, f)) for f in fields}


def _search_terms(search):
    return [f"%{t}%" for t in (search or "").split()]


# --- CONTROLLER ---
class Database:
    def __init__(self, db_url=None):
        db_url = db_url or config.DB_URL
        connect_args = {'check_same_thread': False} if db_url.startswith("sqlite") else {}
        self.engine = create_engine(db_url, connect_args=connect_args)
        Base.metadata.create_all(self.engine)
        self.Session = scoped_session(sessionmaker(bind=self.engine, expire_on_commit=False))
        self.create_default_admin()

    def get_session(self):
        return self.Session()

    @contextmanager
    def session_scope(self):
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def _get(self, session, model, obj_id):
        obj = session.get(model, obj_id)
        if obj is None:
            raise NotFoundError(f"{model.__name__} #{obj_id} not found")
        return obj

    def _record(self, session, event, subject, actor, properties=None, description=None):
        """Appends an activity row for `subject`; flushes first so new rows have an id."""
        session.flush()
        subject_type = type(subject).__name__
        session.add(Activity(
            description=description or f"{subject_type} {event}",
            event=event,
            subject_type=subject_type,
            subject_id=subject.id,
            causer=actor,
            properties=properties or {},
            created_at=datetime.now(),
        ))

    def _record_update(self, session, subject, actor, old, new):
        if new:
            self._record(session, "updated", subject, actor, {"old": old, "attributes": new})

    # --- USER AUTH ---
    def create_default_admin(self):
        with self.session_scope() as session:
            if session.query(User).count() == 0:
                hashed = bcrypt.hashpw(config.DEFAULT_ADMIN_PASSWORD.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')
                session.add(User(username=config.DEFAULT_ADMIN_USER, password_hash=hashed, role="Admin", scope=config.SCOPE_ADMIN))
                logger.info("Seeded default admin user")

    def verify_user(self, username, password):
        with self.session_scope() as session:
            user = session.query(User).filter_by(username=username).first()
            if user and bcrypt.checkpw(password.encode('utf-8'), user.password_hash.encode('utf-8')):
                return (user.id, user.username, user.role, user.scope)
        logger.warning("Failed login for %r", username)
        return None

    def add_user(self, username, password, role="User", scope=config.SCOPE_READ_ONLY, actor=None):
        errors = {}
        if not username:
            errors["username"] = "Username is required."
        if not password:
            errors["password"] = "Password is required."
        if scope not in config.SCOPES:
            errors["scope"] = "Invalid access scope."
        if errors:
            raise ValidationError(errors)

        with self.session_scope() as session:
            if session.query(User).filter_by(username=username).first():
                return False
            hashed = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')
            user = User(username=username, password_hash=hashed, role=role, scope=scope)
            session.add(user)
            self._record(session, "created", user, actor, {"attributes": {"username": username, "scope": scope}})
        logger.info("User %s created by %s", username, actor)
        return True

    def get_all_users(self):
        with self.session_scope() as session:
            return [(u.id, u.username, u.role, u.scope) for u in session.query(User).order_by(User.username).all()]

    def delete_user(self, user_id, actor=None):
        with self.session_scope() as session:
            user = self._get(session, User, user_id)
            self._record(session, "deleted", user, actor, {"old": {"username": user.username}})
            session.delete(user)

    def update_user_scope(self, user_id, new_scope, actor=None):
        if new_scope not in config.SCOPES:
            raise ValidationError({"scope": "Invalid access scope."})
        with self.session_scope() as session:
            user = self._get(session, User, user_id)
            old, new = _apply_changes(user, {"scope": new_scope})
            self._record_update(session, user, actor, old, new)

    def update_user_password(self, user_id, new_password, actor=None):
        if not new_password:
            raise ValidationError({"password": "Password is required."})
        with self.session_scope() as session:
            user = self._get(session, User, user_id)
            user.password_hash = bcrypt.hashpw(new_password.encode(), bcrypt.gensalt()).decode('utf-8')
            self._record(session, "updated", user, actor, description="User password changed")

    # --- HARDWARE SPECS ---
    def _spec_model(self, kind):
        if kind not in SPEC_MODELS:
            raise ValidationError({"type": f"Unknown spec type '{kind}'."})
        return SPEC_MODELS[kind]

    def _validate_spec(self, kind, payload):
        data = validate_fields(config.SPEC_FIELDS[kind], payload)
        errors = {}
        if kind == "processor":
            if data["thread_count"] < data["core_count"]:
                errors["thread_count"] = "Threads must be at least the number of cores."
            if data["boost_clock_ghz"] < data["base_clock_ghz"]:
                errors["boost_clock_ghz"] = "Boost clock must be at least the base clock."
        elif kind == "monitor":
            if data["screen_size"] > config.MONITOR_MAX_SCREEN_SIZE:
                errors["screen_size"] = f"Screen Size (in) may not be greater than {config.MONITOR_MAX_SCREEN_SIZE}."
            if data["panel_type"] not in config.PANEL_TYPES:
                errors["panel_type"] = f"Panel type must be {', '.join(config.PANEL_TYPES[:-1])}, or {config.PANEL_TYPES[-1]}."
        elif kind == "motherboard":
            if data["memory_type"] not in config.RAM_TYPES:
                errors["memory_type"] = "The selected memory type is invalid."
        if errors:
            raise ValidationError(errors)
        return data

    def _stock_map(self, session, kind, spec_ids):
        if not spec_ids:
            return {}
        rows = session.query(Stock).filter(Stock.stockable_type == kind, Stock.stockable_id.in_(spec_ids)).all()
        return {s.stockable_id: s for s in rows}

    def list_specs(self, kind, search=None, limit=config.PAGE_SIZE, offset=0):
        model = self._spec_model(kind)
        with self.session_scope() as session:
            query = session.query(model)
            columns = [getattr(model, c) for c in config.SPEC_SEARCH_COLUMNS[kind]]
            for term in _search_terms(search):
                query = query.filter(or_(*[cast(c, String).ilike(term) for c in columns]))

            total_count = query.count()
            query = query.order_by(model.id.desc())
            if limit:
                query = query.limit(limit).offset(offset)

            specs = query.all()
            stocks = self._stock_map(session, kind, [s.id for s in specs])
            results = []
            for spec in specs:
                row = spec.to_dict()
                stock = stocks.get(spec.id)
                row["stock"] = stock.quantity if stock else 0
                row["stock_id"] = stock.id if stock else None
                results.append(row)
            return results, total_count

    def get_spec(self, kind, spec_id):
        model = self._spec_model(kind)
        with self.session_scope() as session:
            spec = session.get(model, spec_id)
            return spec.to_dict() if spec else None

    def spec_options(self, kind):
        """(id, label) pairs for select boxes."""
        model = self._spec_model(kind)
        with self.session_scope() as session:
            rows = session.query(model.id, model.manufacturer, model.model).order_by(model.manufacturer, model.model).all()
            return [(r[0], f"{r[1]} {r[2]}") for r in rows]

    def create_spec(self, kind, payload, actor=None):
        model = self._spec_model(kind)
        data = self._validate_spec(kind, payload)
        with self.session_scope() as session:
            spec = model(**data)
            session.add(spec)
            self._record(session, "created", spec, actor, {"attributes": {k: _jsonable(v) for k, v in data.items()}})
            spec_id = spec.id
        logger.info("%s spec #%s created by %s", kind, spec_id, actor)
        return spec_id

    def update_spec(self, kind, spec_id, payload, actor=None):
        model = self._spec_model(kind)
        data = self._validate_spec(kind, payload)
        with self.session_scope() as session:
            spec = self._get(session, model, spec_id)
            old, new = _apply_changes(spec, data)
            self._record_update(session, spec, actor, old, new)
        logger.info("%s spec #%s updated: %s", kind, spec_id, new)
        return bool(new)

    def delete_spec(self, kind, spec_id, actor=None):
        model = self._spec_model(kind)
        with self.session_scope() as session:
            spec = self._get(session, model, spec_id)
            fields = [f[0] for f in config.SPEC_FIELDS[kind]]
            self._record(session, "deleted", spec, actor, {"old": _snapshot(spec, fields)})
            session.query(Stock).filter_by(stockable_type=kind, stockable_id=spec_id).delete()
            session.delete(spec)
        logger.info("%s spec #%s deleted by %s", kind, spec_id, actor)

    def seed_specs(self, actor=None):
        created = 0
        with self.session_scope() as session:
            for kind, rows in SEED_SPECS.items():
                model = SPEC_MODELS[kind]
                for row in rows:
                    exists = session.query(model).filter_by(manufacturer=row["manufacturer"], model=row["model"]).first()
                    if exists:
                        continue
                    spec = model(**row)
                    session.add(spec)
                    self._record(session, "created", spec, actor, {"attributes": row})
                    created += 1
        logger.info("Seeded %d hardware specs", created)
        return created

    # --- STOCK ---
    def _stock_labels(self, session, stocks):
        by_kind = {}
        for s in stocks:
            by_kind.setdefault(s.stockable_type, []).append(s.stockable_id)
        labels = {}
        for kind, ids in by_kind.items():
            model = SPEC_MODELS.get(kind)
            if model is None:
                continue
            for spec in session.query(model).filter(model.id.in_(ids)).all():
                labels[(kind, spec.id)] = (spec.manufacturer, spec.model)
        return labels

    def _stock_row(self, stock, labels):
        row = stock.to_dict()
        manufacturer, model = labels.get((stock.stockable_type, stock.stockable_id), (None, None))
        row["manufacturer"] = manufacturer
        row["model"] = model
        row["label"] = f"{manufacturer} {model}" if model else f"{config.SPEC_KINDS.get(stock.stockable_type, stock.stockable_type)} #{stock.stockable_id}"
        return row

    def list_stocks(self, stock_type=None, search=None, limit=config.PAGE_SIZE, offset=0, spec_ids=None):
        with self.session_scope() as session:
            query = session.query(Stock)
            if stock_type and stock_type in SPEC_MODELS:
                query = query.filter(Stock.stockable_type == stock_type)
            if search:
                term = f"%{search.strip()}%"
                kinds = [stock_type] if stock_type in SPEC_MODELS else list(SPEC_MODELS)
                conds = [Stock.location.ilike(term), Stock.notes.ilike(term)]
                for kind in kinds:
                    model = SPEC_MODELS[kind]
                    ids = select(model.id).where(or_(model.manufacturer.ilike(term), model.model.ilike(term)))
                    conds.append(and_(Stock.stockable_type == kind, Stock.stockable_id.in_(ids)))
                query = query.filter(or_(*conds))
            if spec_ids:
                query = query.filter(Stock.stockable_id.in_(spec_ids))

            total_count = query.count()
            query = query.order_by(Stock.id.desc())
            if limit:
                query = query.limit(limit).offset(offset)
            stocks = query.all()
            labels = self._stock_labels(session, stocks)
            return [self._stock_row(s, labels) for s in stocks], total_count

    def get_stock(self, stock_id):
        with self.session_scope() as session:
            stock = session.get(Stock, stock_id)
            if not stock:
                return None
            return self._stock_row(stock, self._stock_labels(session, [stock]))

    def _check_stockable(self, session, stock_type, stockable_id):
        model = SPEC_MODELS.get(stock_type)
        if model is None:
            raise ValidationError({"type": "The selected type is invalid."})
        if not stockable_id or session.get(model, stockable_id) is None:
            raise ValidationError({"stockable_id": "Referenced spec not found"})

    def save_stock(self, stock_type, stockable_id, quantity=0, reserved=0, location=None, notes=None, actor=None):
        """Creates or replaces the stock row of one spec."""
        data = validate_fields([
            ("quantity", "Quantity", "int", False, 0),
            ("reserved", "Reserved", "int", False, 0),
            ("location", "Location", "str", False, None),
        ], {"quantity": quantity, "reserved": reserved, "location": location})
        values = {
            "quantity": data["quantity"] or 0,
            "reserved": data["reserved"] or 0,
            "location": data["location"],
            "notes": notes or None,
        }
        with self.session_scope() as session:
            self._check_stockable(session, stock_type, stockable_id)
            stock = session.query(Stock).filter_by(stockable_type=stock_type, stockable_id=stockable_id).first()
            if stock is None:
                stock = Stock(stockable_type=stock_type, stockable_id=stockable_id, **values)
                session.add(stock)
                self._record(session, "created", stock, actor, {"attributes": values})
            else:
                old, new = _apply_changes(stock, values)
                self._record_update(session, stock, actor, old, new)
            stock_id = stock.id
        logger.info("Stock saved for %s #%s: %s", stock_type, stockable_id, values)
        return stock_id

    def update_stock(self, stock_id, quantity=None, reserved=None, location=None, notes=None,
                     delta_quantity=None, delta_reserved=None, actor=None):
        """Deltas take precedence over absolute values; results never go below zero."""
        data = validate_fields([
            ("quantity", "Quantity", "int", False, 0),
            ("reserved", "Reserved", "int", False, 0),
            ("delta_quantity", "Quantity change", "int", False, None),
            ("delta_reserved", "Reserved change", "int", False, None),
        ], {"quantity": quantity, "reserved": reserved, "delta_quantity": delta_quantity, "delta_reserved": delta_reserved})

        with self.session_scope() as session:
            stock = self._get(session, Stock, stock_id)
            changes = {}
            if data["delta_quantity"] is not None:
                changes["quantity"] = max(0, stock.quantity + data["delta_quantity"])
            elif data["quantity"] is not None:
                changes["quantity"] = data["quantity"]
            if data["delta_reserved"] is not None:
                changes["reserved"] = max(0, stock.reserved + data["delta_reserved"])
            elif data["reserved"] is not None:
                changes["reserved"] = data["reserved"]
            if location is not None:
                changes["location"] = location or None
            if notes is not None:
                changes["notes"] = notes or None
            old, new = _apply_changes(stock, changes)
            self._record_update(session, stock, actor, old, new)
            return stock.to_dict()

    def adjust_stock(self, stock_type, stockable_id, delta, actor=None):
        data = validate_fields([("delta", "Delta", "int", True, None)], {"delta": delta})
        with self.session_scope() as session:
            self._check_stockable(session, stock_type, stockable_id)
            stock = session.query(Stock).filter_by(stockable_type=stock_type, stockable_id=stockable_id).first()
            if stock is None:
                stock = Stock(stockable_type=stock_type, stockable_id=stockable_id, quantity=0, reserved=0)
                session.add(stock)
                self._record(session, "created", stock, actor, {"attributes": {"quantity": 0, "reserved": 0}})
            old, new = _apply_changes(stock, {"quantity": max(0, stock.quantity + data["delta"])})
            self._record_update(session, stock, actor, old, new)
            return stock.quantity

    def delete_stock(self, stock_id, actor=None):
        with self.session_scope() as session:
            stock = self._get(session, Stock, stock_id)
            self._record(session, "deleted", stock, actor, {"old": _snapshot(stock, ["stockable_type", "stockable_id", "quantity", "reserved"])})
            session.delete(stock)

    def stock_overview(self):
        with self.session_scope() as session:
            stocks = session.query(Stock).all()
            labels = self._stock_labels(session, stocks)
            rows = [self._stock_row(s, labels) for s in stocks]

        by_type = {k: {"quantity": 0, "reserved": 0, "available": 0, "items": 0} for k in SPEC_MODELS}
        for r in rows:
            bucket = by_type.setdefault(r["type"], {"quantity": 0, "reserved": 0, "available": 0, "items": 0})
            bucket["quantity"] += r["quantity"]
            bucket["reserved"] += r["reserved"]
            bucket["available"] += r["available"]
            bucket["items"] += 1
        low_stock = sorted((r for r in rows if r["available"] <= config.LOW_STOCK_THRESHOLD), key=lambda r: r["available"])
        return {"by_type": by_type, "low_stock": low_stock}

    # --- ACTIVITY LOG ---
    def _activity_query(self, session, search=None, event=None, causer=None):
        query = session.query(Activity)
        if search:
            term = f"%{search.strip()}%"
            query = query.filter(or_(
                Activity.description.ilike(term),
                Activity.subject_type.ilike(term),
                Activity.causer.ilike(term),
            ))
        if event and event != "all":
            query = query.filter(Activity.event == event)
        if causer and causer != "all":
            query = query.filter(Activity.causer == causer)
        return query

    def list_activities(self, search=None, event=None, causer=None, limit=config.ACTIVITY_PAGE_SIZE, offset=0):
        with self.session_scope() as session:
            query = self._activity_query(session, search, event, causer)
            total_count = query.count()
            query = query.order_by(Activity.created_at.desc(), Activity.id.desc())
            if limit:
                query = query.limit(limit).offset(offset)
            return [a.to_dict() for a in query.all()], total_count

    def get_causers(self):
        with self.session_scope() as session:
            rows = session.query(Activity.causer).filter(Activity.causer.isnot(None)).distinct().order_by(Activity.causer).all()
            return [r[0] for r in rows]

    def purge_activities(self, older_than_days=config.ACTIVITY_RETENTION_DAYS, now=None):
        cutoff = (now or datetime.now()) - timedelta(days=older_than_days)
        with self.session_scope() as session:
            deleted = session.query(Activity).filter(Activity.created_at < cutoff).delete()
        logger.info("Purged %d activity rows older than %s", deleted, cutoff)
        return deleted

    # --- SITES / CAMPAIGNS ---
    def _named_list(self, model):
        with self.session_scope() as session:
            return [(r.id, r.name) for r in session.query(model).order_by(model.name).all()]

    def _create_named(self, model, name, actor):
        name = (name or "").strip()
        if not name:
            raise ValidationError({"name": "Name is required."})
        with self.session_scope() as session:
            if session.query(model).filter(func.lower(model.name) == name.lower()).first():
                raise ValidationError({"name": f"{model.__name__} '{name}' already exists."})
            obj = model(name=name)
            session.add(obj)
            self._record(session, "created", obj, actor, {"attributes": {"name": name}})
            return obj.id

    def _delete_named(self, model, obj_id, actor):
        with self.session_scope() as session:
            obj = self._get(session, model, obj_id)
            if session.query(Station).filter(getattr(Station, f"{model.__tablename__[:-1]}_id") == obj_id).count():
                raise ValidationError({"name": f"{model.__name__} still has stations assigned."})
            self._record(session, "deleted", obj, actor, {"old": {"name": obj.name}})
            session.delete(obj)

    def list_sites(self):
        return self._named_list(Site)

    def create_site(self, name, actor=None):
        return self._create_named(Site, name, actor)

    def delete_site(self, site_id, actor=None):
        self._delete_named(Site, site_id, actor)

    def list_campaigns(self):
        return self._named_list(Campaign)

    def create_campaign(self, name, actor=None):
        return self._create_named(Campaign, name, actor)

    def delete_campaign(self, campaign_id, actor=None):
        self._delete_named(Campaign, campaign_id, actor)

    # --- PC SPECS ---
    def list_pc_specs(self, unassigned_only=False):
        with self.session_scope() as session:
            query = session.query(PcSpec)
            if unassigned_only:
                query = query.filter(~PcSpec.stations.any())
            return [p.to_dict() for p in query.order_by(PcSpec.pc_number).all()]

    def create_pc_spec(self, payload, actor=None):
        data = validate_fields([
            ("pc_number", "PC number", "str", True, None),
            ("manufacturer", "Manufacturer", "str", False, None),
            ("model", "Model", "str", False, None),
            ("issue", "Issue", "str", False, None),
        ], payload)
        with self.session_scope() as session:
            if session.query(PcSpec).filter_by(pc_number=data["pc_number"]).first():
                raise ValidationError({"pc_number": "PC number has already been taken."})
            pc = PcSpec(**data)
            errors = {}
            for kind in config.PC_COMPONENT_KINDS:
                attr = f"{kind}_specs"
                ids = payload.get(f"{kind}_ids") or []
                model = SPEC_MODELS[kind]
                specs = session.query(model).filter(model.id.in_(ids)).all() if ids else []
                if len(specs) != len(set(ids)):
                    errors[f"{kind}_ids"] = f"Unknown {config.SPEC_KINDS[kind]} spec selected."
                setattr(pc, attr, specs)
            if errors:
                raise ValidationError(errors)
            session.add(pc)
            self._record(session, "created", pc, actor, {"attributes": {k: v for k, v in data.items() if v is not None}})
            return pc.id

    def delete_pc_spec(self, pc_spec_id, actor=None):
        with self.session_scope() as session:
            pc = self._get(session, PcSpec, pc_spec_id)
            for station in list(pc.stations):
                self._detach_pc(station)
            self._record(session, "deleted", pc, actor, {"old": {"pc_number": pc.pc_number}})
            session.delete(pc)

    # --- PC TRANSFERS ---
    def _detach_pc(self, station):
        station.pc_spec = None
        if station.status == "Occupied":
            station.status = "No PC"

    def _attach_pc(self, station, pc):
        station.pc_spec = pc
        if station.status == "No PC":
            station.status = "Vacant"

    def _log_transfer(self, session, actor, notes, transfer_type, pc, from_station=None, to_station=None):
        transfer = PcTransfer(pc_spec_id=pc.id, from_station_id=from_station.id if from_station else None,
                              to_station_id=to_station.id if to_station else None, transfer_type=transfer_type,
                              causer=actor, notes=notes or None, created_at=datetime.now())
        session.add(transfer)
        self._record(session, "created", transfer, actor, {"attributes": {
            "pc_number": pc.pc_number,
            "from_station": from_station.station_number if from_station else None,
            "to_station": to_station.station_number if to_station else None,
            "transfer_type": transfer_type,
        }})

    def transfer_pc(self, pc_spec_id, to_station_id, swap=False, notes=None, actor=None):
        """
        Moves a PC onto a station, detaching it from wherever it was.
        With swap=True the PC already on the target goes back to the source station.
        Returns the transfer type that was applied.
        """
        with self.session_scope() as session:
            pc = self._get(session, PcSpec, pc_spec_id)
            target = session.get(Station, to_station_id)
            if target is None:
                raise ValidationError({"to_station_id": "The selected station is invalid."})
            if target.pc_spec_id == pc.id:
                raise ValidationError({"to_station_id": "This PC is already assigned to the selected station."})

            sources = list(pc.stations)
            source = sources[0] if sources else None
            displaced = target.pc_spec
            if swap and displaced is not None and source is None:
                raise ValidationError({"to_station_id": "Only a PC assigned to a station can be swapped."})
            swapping = swap and displaced is not None

            if swapping:
                # both stations keep their status
                for station in sources[1:]:
                    self._detach_pc(station)
                source.pc_spec, target.pc_spec = displaced, pc
                self._log_transfer(session, actor, notes, "swap", pc, source, target)
                self._log_transfer(session, actor, notes, "swap", displaced, target, source)
            else:
                for station in sources:
                    self._detach_pc(station)
                self._attach_pc(target, pc)
                self._log_transfer(session, actor, notes, "assign", pc, source, target)
        logger.info("PC #%s moved to station #%s (%s) by %s", pc_spec_id, to_station_id,
                    "swap" if swapping else "assign", actor)
        return "swap" if swapping else "assign"

    def remove_pc_from_station(self, station_id, notes=None, actor=None):
        with self.session_scope() as session:
            station = self._get(session, Station, station_id)
            pc = station.pc_spec
            if pc is None:
                raise ValidationError({"station_id": "This station has no PC to remove."})
            self._detach_pc(station)
            self._log_transfer(session, actor, notes, "remove", pc, from_station=station)

    def list_pc_transfers(self, limit=config.PAGE_SIZE, offset=0):
        with self.session_scope() as session:
            query = session.query(PcTransfer)
            total_count = query.count()
            query = query.order_by(PcTransfer.created_at.desc(), PcTransfer.id.desc())
            if limit:
                query = query.limit(limit).offset(offset)
            return [t.to_dict() for t in query.all()], total_count

    def record_maintenance(self, pc_spec_id, next_due_date, last_maintenance_date=None, notes=None, actor=None):
        if not next_due_date:
            raise ValidationError({"next_due_date": "Next due date is required."})
        if last_maintenance_date and next_due_date < last_maintenance_date:
            raise ValidationError({"next_due_date": "Next due date must be after the last maintenance."})
        with self.session_scope() as session:
            self._get(session, PcSpec, pc_spec_id)
            m = PcMaintenance(pc_spec_id=pc_spec_id, next_due_date=next_due_date,
                              last_maintenance_date=last_maintenance_date, status="pending", notes=notes)
            session.add(m)
            self._record(session, "created", m, actor, {"attributes": {"pc_spec_id": pc_spec_id, "next_due_date": _jsonable(next_due_date)}})
            return m.id

    def complete_maintenance(self, maintenance_id, actor=None, today=None):
        today = today or date.today()
        with self.session_scope() as session:
            m = self._get(session, PcMaintenance, maintenance_id)
            old, new = _apply_changes(m, {"status": "completed", "last_maintenance_date": today})
            self._record_update(session, m, actor, old, new)

    def list_maintenances(self):
        with self.session_scope() as session:
            rows = session.query(PcMaintenance).order_by(PcMaintenance.next_due_date).all()
            return [m.to_dict() for m in rows]

    # --- STATIONS ---
    def _validate_station(self, session, payload, station_id=None):
        data = validate_fields([
            ("station_number", "Station number", "str", True, None),
            ("site_id", "Site", "int", True, 1),
            ("campaign_id", "Campaign", "int", True, 1),
            ("status", "Status", "str", True, None),
            ("monitor_type", "Monitor type", "str", True, None),
            ("pc_spec_id", "PC", "int", False, 1),
        ], payload)
        errors = {}
        if session.get(Site, data["site_id"]) is None:
            errors["site_id"] = "The selected site is invalid."
        if session.get(Campaign, data["campaign_id"]) is None:
            errors["campaign_id"] = "The selected campaign is invalid."
        if data["status"] not in config.STATION_STATUSES:
            errors["status"] = "The selected status is invalid."
        if data["monitor_type"] not in config.MONITOR_TYPES:
            errors["monitor_type"] = "The selected monitor type is invalid."
        if data["pc_spec_id"] and session.get(PcSpec, data["pc_spec_id"]) is None:
            errors["pc_spec_id"] = "The selected PC is invalid."
        dup = session.query(Station).filter_by(site_id=data["site_id"], station_number=data["station_number"])
        if station_id:
            dup = dup.filter(Station.id != station_id)
        if dup.first():
            errors["station_number"] = "Station number already exists for this site."
        if errors:
            raise ValidationError(errors)
        return data

    def list_stations(self, search=None, site_id=None, campaign_id=None, status=None, limit=config.PAGE_SIZE, offset=0):
        with self.session_scope() as session:
            query = session.query(Station).outerjoin(PcSpec, Station.pc_spec_id == PcSpec.id)
            for term in _search_terms(search):
                query = query.filter(or_(Station.station_number.ilike(term), PcSpec.pc_number.ilike(term)))
            if site_id:
                query = query.filter(Station.site_id == site_id)
            if campaign_id:
                query = query.filter(Station.campaign_id == campaign_id)
            if status and status != "All":
                query = query.filter(Station.status == status)
            total_count = query.count()
            query = query.order_by(Station.station_number)
            if limit:
                query = query.limit(limit).offset(offset)
            return [s.to_dict() for s in query.all()], total_count

    def get_station(self, station_id):
        with self.session_scope() as session:
            station = session.get(Station, station_id)
            return station.to_dict() if station else None

    def create_station(self, payload, actor=None):
        with self.session_scope() as session:
            data = self._validate_station(session, payload)
            station = Station(**data)
            session.add(station)
            self._record(session, "created", station, actor, {"attributes": data})
            return station.id

    def update_station(self, station_id, payload, actor=None):
        with self.session_scope() as session:
            station = self._get(session, Station, station_id)
            data = self._validate_station(session, payload, station_id)
            old, new = _apply_changes(station, data)
            self._record_update(session, station, actor, old, new)
            return bool(new)

    def delete_station(self, station_id, actor=None):
        with self.session_scope() as session:
            station = self._get(session, Station, station_id)
            self._record(session, "deleted", station, actor, {"old": _snapshot(station, ["station_number", "site_id", "campaign_id", "status"])})
            session.delete(station)

    def _station_count_by_site(self, session, *conditions):
        query = session.query(Site.name, func.count(Station.id)).join(Station, Station.site_id == Site.id)
        for cond in conditions:
            query = query.filter(cond)
        rows = query.group_by(Site.name).order_by(Site.name).all()
        return [{"site": name, "count": int(count)} for name, count in rows]

    def station_stats(self, today=None):
        today = today or date.today()
        with self.session_scope() as session:
            no_pc = session.query(Station).filter(Station.pc_spec_id.is_(None)).order_by(Station.station_number).all()
            vacant = session.query(Station).filter(Station.status == "Vacant").all()

            maintenances = session.query(PcMaintenance).filter(or_(
                PcMaintenance.status == "overdue",
                and_(PcMaintenance.status == "pending", PcMaintenance.next_due_date < today),
            )).order_by(PcMaintenance.next_due_date).all()
            due = []
            for m in maintenances:
                days = (today - m.next_due_date).days
                if days <= 0:
                    continue
                overdue = stats.format_days_overdue(days)
                pc_stations = m.pc_spec.stations if m.pc_spec else []
                if not pc_stations:
                    due.append({"station": m.pc_spec.pc_number if m.pc_spec else "Unknown PC", "site": "Unassigned",
                                "due_date": m.next_due_date, "days_overdue": overdue})
                for s in pc_stations:
                    due.append({"station": s.station_number, "site": s.site.name if s.site else "Unknown Site",
                                "due_date": m.next_due_date, "days_overdue": overdue})

            return {
                "total_stations": {
                    "total": session.query(Station).count(),
                    "by_site": self._station_count_by_site(session),
                },
                "no_pcs": {
                    "total": len(no_pc),
                    "stations": [{"station": s.station_number, "site": s.site.name, "campaign": s.campaign.name} for s in no_pc],
                },
                "vacant_stations": {
                    "total": len(vacant),
                    "by_site": self._station_count_by_site(session, Station.status == "Vacant"),
                    "stations": [{"site": s.site.name, "station_number": s.station_number} for s in vacant],
                },
                "dual_monitor": {
                    "total": session.query(Station).filter(Station.monitor_type == "dual").count(),
                    "by_site": self._station_count_by_site(session, Station.monitor_type == "dual"),
                },
                "maintenance_due": {"total": len(due), "stations": due},
                "unassigned_pc_specs": [p.to_dict() for p in session.query(PcSpec).filter(~PcSpec.stations.any()).all()],
            }

    # --- IT CONCERNS ---
    CONCERN_RULES = [
        ("reporter", "Reporter", "str", True, None),
        ("site_id", "Site", "int", True, 1),
        ("station_number", "Station number", "str", True, None),
        ("category", "Category", "str", True, None),
        ("description", "Description", "str", True, None),
        ("priority", "Priority", "str", True, None),
        ("status", "Status", "str", False, None),
        ("resolution_notes", "Resolution notes", "str", False, None),
    ]

    def _validate_concern(self, session, payload, partial=False):
        data = validate_fields(self.CONCERN_RULES, payload, partial=partial)
        errors = {}
        if "site_id" in data and session.get(Site, data["site_id"]) is None:
            errors["site_id"] = "The selected site is invalid."
        if "category" in data and data["category"] not in config.CONCERN_CATEGORIES:
            errors["category"] = "Invalid category selected."
        if "priority" in data and data["priority"] not in config.CONCERN_PRIORITIES:
            errors["priority"] = "Invalid priority level selected."
        if data.get("status") is not None and data["status"] not in config.CONCERN_STATUSES:
            errors["status"] = "Invalid status selected."
        if errors:
            raise ValidationError(errors)
        if data.get("status") is None:
            data.pop("status", None)
        return data

    def list_concerns(self, search=None, status=None, category=None, priority=None, site_id=None,
                      limit=config.PAGE_SIZE, offset=0):
        with self.session_scope() as session:
            query = session.query(ItConcern)
            for term in _search_terms(search):
                query = query.filter(or_(ItConcern.description.ilike(term), ItConcern.station_number.ilike(term),
                                         ItConcern.reporter.ilike(term)))
            for column, value in ((ItConcern.status, status), (ItConcern.category, category),
                                  (ItConcern.priority, priority), (ItConcern.site_id, site_id)):
                if value and value != "All":
                    query = query.filter(column == value)
            total_count = query.count()
            query = query.order_by(ItConcern.created_at.desc(), ItConcern.id.desc())
            if limit:
                query = query.limit(limit).offset(offset)
            return [c.to_dict() for c in query.all()], total_count

    def get_concern(self, concern_id):
        with self.session_scope() as session:
            concern = session.get(ItConcern, concern_id)
            return concern.to_dict() if concern else None

    def create_concern(self, payload, actor=None, now=None):
        with self.session_scope() as session:
            data = self._validate_concern(session, payload)
            data.setdefault("status", "pending")
            concern = ItConcern(**data, created_at=now or datetime.now())
            if concern.status == "resolved":
                concern.resolved_at, concern.resolved_by = datetime.now(), actor
            session.add(concern)
            self._record(session, "created", concern, actor, {"attributes": data})
            return concern.id

    def update_concern(self, concern_id, payload, actor=None):
        with self.session_scope() as session:
            concern = self._get(session, ItConcern, concern_id)
            data = self._validate_concern(session, payload, partial=True)
            if "status" in data and data["status"] != concern.status:
                if data["status"] == "resolved":
                    data["resolved_at"], data["resolved_by"] = datetime.now(), actor
                else:
                    data["resolved_at"], data["resolved_by"] = None, None
            old, new = _apply_changes(concern, data)
            self._record_update(session, concern, actor, old, new)
            return bool(new)

    def delete_concern(self, concern_id, actor=None):
        with self.session_scope() as session:
            concern = self._get(session, ItConcern, concern_id)
            self._record(session, "deleted", concern, actor, {"old": _snapshot(concern, ["station_number", "category", "status"])})
            session.delete(concern)

    def concern_stats(self):
        statuses = config.CONCERN_STATUSES
        with self.session_scope() as session:
            counts = dict(session.query(ItConcern.status, func.count(ItConcern.id))
                          .filter(ItConcern.status.in_(statuses)).group_by(ItConcern.status).all())
            per_site = session.query(Site.name, ItConcern.status, func.count(ItConcern.id)) \
                .join(ItConcern, ItConcern.site_id == Site.id) \
                .filter(ItConcern.status.in_(statuses)) \
                .group_by(Site.name, ItConcern.status).all()

        by_site = {}
        for site, status, total in per_site:
            row = by_site.setdefault(site, {"site": site, **{s: 0 for s in statuses}})
            row[status] = int(total)
        rows = []
        for site in sorted(by_site):
            row = by_site[site]
            row["total"] = sum(row[s] for s in statuses)
            if row["total"] > 0:
                rows.append(row)

        result = {s: int(counts.get(s, 0)) for s in statuses}
        result["by_site"] = rows
        return result

    def concern_trends(self, today=None):
        today = today or date.today()
        with self.session_scope() as session:
            records = [{"created_at": c.created_at, "status": c.status} for c in session.query(ItConcern).all()]
        return stats.monthly_status_trend(records, "created_at", today)

    # --- EMPLOYEES ---
    def list_employees(self, active_only=True):
        with self.session_scope() as session:
            query = session.query(Employee)
            if active_only:
                query = query.filter(Employee.is_active.is_(True))
            return [e.to_dict() for e in query.order_by(Employee.last_name, Employee.first_name).all()]

    def create_employee(self, payload, actor=None):
        data = validate_fields([
            ("first_name", "First name", "str", True, None),
            ("last_name", "Last name", "str", True, None),
            ("role", "Role", "str", True, None),
            ("campaign_id", "Campaign", "int", False, 1),
        ], payload)
        errors = {}
        if data["role"] not in config.EMPLOYEE_ROLES:
            errors["role"] = "The selected role is invalid."
        with self.session_scope() as session:
            if data["campaign_id"] and session.get(Campaign, data["campaign_id"]) is None:
                errors["campaign_id"] = "The selected campaign is invalid."
            if errors:
                raise ValidationError(errors)
            employee = Employee(**data, is_active=True)
            session.add(employee)
            self._record(session, "created", employee, actor, {"attributes": data})
            return employee.id

    def set_employee_active(self, employee_id, active, actor=None):
        with self.session_scope() as session:
            employee = self._get(session, Employee, employee_id)
            old, new = _apply_changes(employee, {"is_active": bool(active)})
            self._record_update(session, employee, actor, old, new)

    # --- ATTENDANCE ---
    ATTENDANCE_RULES = [
        ("employee_id", "Employee", "int", True, 1),
        ("status", "Status", "str", True, None),
        ("tardy_minutes", "Tardy minutes", "int", False, 0),
        ("undertime_minutes", "Undertime minutes", "int", False, 0),
        ("notes", "Notes", "str", False, None),
    ]

    def _violation_details(self, attendance):
        day = attendance.shift_date.isoformat()
        return {
            "ncns": f"No Call, No Show on {day}",
            "advised_absence": f"Advised absence on {day}",
            "half_day_absence": f"Half-day absence on {day}",
            "tardy": f"Tardy by {attendance.tardy_minutes or 0} minutes on {day}",
            "undertime": f"Undertime of {attendance.undertime_minutes or 0} minutes on {day}",
            "undertime_more_than_hour": f"Undertime of {attendance.undertime_minutes or 0} minutes (more than 1 hour) on {day}",
        }.get(attendance.status, f"Attendance violation on {day}")

    def _new_point(self, employee_id, shift_date, point_type, is_advised, **extra):
        unadvised_absence = point_type == "whole_day_absence" and not is_advised
        months = config.UNADVISED_EXPIRY_MONTHS if unadvised_absence else config.STANDARD_EXPIRY_MONTHS
        return AttendancePoint(
            employee_id=employee_id,
            shift_date=shift_date,
            point_type=point_type,
            points=config.POINT_VALUES[point_type],
            is_advised=is_advised,
            expires_at=stats.add_months(shift_date, months),
            expiration_type="none" if unadvised_absence else "sro",
            eligible_for_gbro=not unadvised_absence,
            **extra,
        )

    def _generate_points(self, session, attendance):
        point_type = config.STATUS_POINT_TYPES.get(attendance.status)
        if point_type is None:
            return None
        point = self._new_point(
            attendance.employee_id, attendance.shift_date, point_type,
            is_advised=attendance.status == "advised_absence",
            attendance=attendance,
            violation_details=self._violation_details(attendance),
        )
        session.add(point)
        return point

    def record_attendance(self, payload, actor=None):
        data = validate_fields(self.ATTENDANCE_RULES, payload)
        shift_date = payload.get("shift_date")
        errors = {}
        if not isinstance(shift_date, date):
            errors["shift_date"] = "Shift date is required."
        if data["status"] not in config.ATTENDANCE_STATUSES:
            errors["status"] = "The selected status is invalid."
        with self.session_scope() as session:
            if session.get(Employee, data["employee_id"]) is None:
                errors["employee_id"] = "The selected employee is invalid."
            elif not errors and session.query(Attendance).filter_by(employee_id=data["employee_id"], shift_date=shift_date).first():
                errors["shift_date"] = "Attendance for this employee and date already exists."
            if errors:
                raise ValidationError(errors)

            attendance = Attendance(
                employee_id=data["employee_id"], shift_date=shift_date, status=data["status"],
                tardy_minutes=data["tardy_minutes"] or 0, undertime_minutes=data["undertime_minutes"] or 0,
                notes=data["notes"], admin_verified=bool(payload.get("admin_verified", False)),
            )
            session.add(attendance)
            point = self._generate_points(session, attendance)
            self._record(session, "created", attendance, actor, {"attributes": {"status": data["status"], "shift_date": shift_date.isoformat()}})
            if point is not None:
                self._record(session, "created", point, actor, {"attributes": {"point_type": point.point_type, "points": point.points}})
            return attendance.id

    def update_attendance_status(self, attendance_id, status, actor=None, tardy_minutes=None, undertime_minutes=None):
        """Changing the status replaces the record's generated points."""
        if status not in config.ATTENDANCE_STATUSES:
            raise ValidationError({"status": "The selected status is invalid."})
        with self.session_scope() as session:
            attendance = self._get(session, Attendance, attendance_id)
            changes = {"status": status}
            if tardy_minutes is not None:
                changes["tardy_minutes"] = int(tardy_minutes)
            if undertime_minutes is not None:
                changes["undertime_minutes"] = int(undertime_minutes)
            old, new = _apply_changes(attendance, changes)
            if "status" in new:
                for point in list(attendance.points):
                    self._record(session, "deleted", point, actor, {"old": {"point_type": point.point_type, "points": point.points}})
                    attendance.points.remove(point)
                point = self._generate_points(session, attendance)
                if point is not None:
                    self._record(session, "created", point, actor, {"attributes": {"point_type": point.point_type, "points": point.points}})
            self._record_update(session, attendance, actor, old, new)
            return bool(new)

    def verify_attendance(self, attendance_id, actor=None):
        with self.session_scope() as session:
            attendance = self._get(session, Attendance, attendance_id)
            old, new = _apply_changes(attendance, {"admin_verified": True})
            self._record_update(session, attendance, actor, old, new)

    def delete_attendance(self, attendance_id, actor=None):
        with self.session_scope() as session:
            attendance = self._get(session, Attendance, attendance_id)
            for point in attendance.points:
                self._record(session, "deleted", point, actor, {"old": {"point_type": point.point_type, "points": point.points}})
            self._record(session, "deleted", attendance, actor, {"old": {"status": attendance.status, "shift_date": attendance.shift_date.isoformat()}})
            session.delete(attendance)

    def list_attendance(self, start_date=None, end_date=None, status=None, employee_id=None, limit=config.PAGE_SIZE, offset=0):
        with self.session_scope() as session:
            query = session.query(Attendance)
            if start_date:
                query = query.filter(Attendance.shift_date >= start_date)
            if end_date:
                query = query.filter(Attendance.shift_date <= end_date)
            if status and status != "all":
                query = query.filter(Attendance.status == status)
            if employee_id:
                query = query.filter(Attendance.employee_id == employee_id)
            total_count = query.count()
            query = query.order_by(Attendance.shift_date.desc(), Attendance.id.desc())
            if limit:
                query = query.limit(limit).offset(offset)
            return [a.to_dict() for a in query.all()], total_count

    def attendance_statistics(self, start_date=None, end_date=None):
        today = date.today()
        start_date = start_date or stats.month_start(today)
        end_date = end_date or stats.month_end(today)
        with self.session_scope() as session:
            in_range = session.query(Attendance).filter(Attendance.shift_date.between(start_date, end_date))
            counts = dict(in_range.with_entities(Attendance.status, func.count(Attendance.id)).group_by(Attendance.status).all())
            needs_verification = in_range.filter(or_(
                Attendance.admin_verified.is_(False),
                Attendance.status.in_(config.NEEDS_VERIFICATION_STATUSES),
            )).count()
        return {
            "total": sum(counts.values()),
            "on_time": counts.get("on_time", 0),
            "tardy": counts.get("tardy", 0),
            "half_day": counts.get("half_day_absence", 0),
            "ncns": counts.get("ncns", 0),
            "advised": counts.get("advised_absence", 0),
            "needs_verification": needs_verification,
        }

    def presence_today(self, day=None):
        day = day or date.today()
        with self.session_scope() as session:
            scheduled = session.query(Employee).filter(
                Employee.is_active.is_(True), Employee.role.in_(["Agent", "Team Lead", "IT", "Utility"])
            ).count()
            verified = session.query(Attendance).filter(Attendance.shift_date == day, Attendance.admin_verified.is_(True))
            present = verified.filter(Attendance.status.in_(config.PRESENT_STATUSES)).count()
            absent = verified.filter(Attendance.status.in_(config.ABSENT_STATUSES)).count()
            on_leave = session.query(LeaveRequest).filter(
                LeaveRequest.status == "approved", LeaveRequest.start_date <= day, LeaveRequest.end_date >= day
            ).count()
        return {
            "total_scheduled": scheduled,
            "present": present,
            "absent": absent,
            "on_leave": on_leave,
            "unaccounted": max(0, scheduled - present - absent - on_leave),
        }

    # --- ATTENDANCE POINTS ---
    def _points_query(self, session, employee_id=None, date_from=None, date_to=None, state=None):
        query = session.query(AttendancePoint)
        if employee_id:
            query = query.filter(AttendancePoint.employee_id == employee_id)
        if date_from:
            query = query.filter(AttendancePoint.shift_date >= date_from)
        if date_to:
            query = query.filter(AttendancePoint.shift_date <= date_to)
        if state == "active":
            query = query.filter(AttendancePoint.is_excused.is_(False), AttendancePoint.is_expired.is_(False))
        elif state == "excused":
            query = query.filter(AttendancePoint.is_excused.is_(True))
        elif state == "expired":
            query = query.filter(AttendancePoint.is_expired.is_(True))
        return query

    def list_points(self, employee_id=None, date_from=None, date_to=None, state=None, limit=config.PAGE_SIZE, offset=0):
        with self.session_scope() as session:
            query = self._points_query(session, employee_id, date_from, date_to, state)
            total_count = query.count()
            query = query.order_by(AttendancePoint.shift_date.desc(), AttendancePoint.id.desc())
            if limit:
                query = query.limit(limit).offset(offset)
            return [p.to_dict() for p in query.all()], total_count

    def create_manual_point(self, payload, actor=None):
        data = validate_fields([
            ("employee_id", "Employee", "int", True, 1),
            ("point_type", "Point type", "str", True, None),
            ("violation_details", "Violation details", "str", False, None),
        ], payload)
        shift_date = payload.get("shift_date")
        errors = {}
        if not isinstance(shift_date, date):
            errors["shift_date"] = "Shift date is required."
        if data["point_type"] not in config.POINT_TYPES:
            errors["point_type"] = "The selected point type is invalid."
        with self.session_scope() as session:
            if session.get(Employee, data["employee_id"]) is None:
                errors["employee_id"] = "The selected employee is invalid."
            if errors:
                raise ValidationError(errors)
            point = self._new_point(data["employee_id"], shift_date, data["point_type"],
                                    is_advised=bool(payload.get("is_advised", False)),
                                    violation_details=data["violation_details"])
            session.add(point)
            self._record(session, "created", point, actor, {"attributes": {"point_type": point.point_type, "points": point.points, "shift_date": shift_date.isoformat()}})
            return point.id

    def excuse_point(self, point_id, reason, actor=None):
        if not (reason or "").strip():
            raise ValidationError({"excuse_reason": "Please provide a reason for excusing this point."})
        with self.session_scope() as session:
            point = self._get(session, AttendancePoint, point_id)
            old, new = _apply_changes(point, {"is_excused": True, "excused_by": actor, "excuse_reason": reason.strip()})
            point.excused_at = datetime.now()
            self._record_update(session, point, actor, old, new)

    def unexcuse_point(self, point_id, actor=None):
        with self.session_scope() as session:
            point = self._get(session, AttendancePoint, point_id)
            old, new = _apply_changes(point, {"is_excused": False, "excused_by": None, "excuse_reason": None})
            point.excused_at = None
            self._record_update(session, point, actor, old, new)

    def expire_points(self, today=None, actor=None):
        """Marks active points whose expiry date has passed as expired; returns how many."""
        today = today or date.today()
        with self.session_scope() as session:
            due = self._points_query(session, state="active").filter(AttendancePoint.expires_at <= today).all()
            for point in due:
                old, new = _apply_changes(point, {"is_expired": True, "expired_at": today})
                self._record_update(session, point, actor, old, new)
        if due:
            logger.info("Expired %d attendance points", len(due))
        return len(due)

    def gbro_expire(self, employee_id=None, today=None, actor=None):
        """
        Applies Good Behavior Roll Off to one employee, or to everyone when
        employee_id is None. Returns how many points were rolled off.
        """
        today = today or date.today()
        expired = 0
        with self.session_scope() as session:
            query = session.query(AttendancePoint).filter(
                AttendancePoint.eligible_for_gbro.is_(True), AttendancePoint.is_expired.is_(False))
            if employee_id:
                query = query.filter(AttendancePoint.employee_id == employee_id)
            by_employee = {}
            for point in query.all():
                by_employee.setdefault(point.employee_id, []).append(point)

            for emp_id, points in by_employee.items():
                last_gbro = session.query(func.max(AttendancePoint.gbro_applied_at)) \
                    .filter(AttendancePoint.employee_id == emp_id).scalar()
                lookup = {p.id: p for p in points}
                rows = [{"id": p.id, "shift_date": p.shift_date, "is_excused": bool(p.is_excused)} for p in points]
                for rolloff, ids in stats.gbro_rolloffs(rows, today, last_gbro):
                    for point_id in ids:
                        point = lookup[point_id]
                        old, new = _apply_changes(point, {"is_expired": True, "expired_at": rolloff,
                                                          "expiration_type": "gbro", "gbro_applied_at": rolloff})
                        self._record_update(session, point, actor, old, new)
                        expired += 1
        if expired:
            logger.info("Rolled off %d attendance points via GBRO", expired)
        return expired

    def points_statistics(self, employee_id=None, date_from=None, date_to=None):
        points, _ = self.list_points(employee_id, date_from, date_to, limit=None)
        summary = stats.points_summary(points)
        summary["high_risk_employees"] = self.high_risk_employees()
        return summary

    def high_risk_employees(self):
        points, _ = self.list_points(state="active", limit=None)
        return stats.high_risk_employees(points)

    def points_trend(self, today=None):
        points, _ = self.list_points(limit=None)
        return stats.monthly_points_trend(points, today or date.today())

    # --- LEAVE ---
    def create_leave_request(self, payload, actor=None):
        data = validate_fields([
            ("employee_id", "Employee", "int", True, 1),
            ("leave_type", "Leave type", "str", True, None),
            ("reason", "Reason", "str", True, None),
        ], payload)
        start, end = payload.get("start_date"), payload.get("end_date")
        errors = {}
        if data["leave_type"] not in config.LEAVE_TYPES:
            errors["leave_type"] = "The selected leave type is invalid."
        if not isinstance(start, date):
            errors["start_date"] = "Start date is required."
        if not isinstance(end, date):
            errors["end_date"] = "End date is required."
        elif isinstance(start, date) and end < start:
            errors["end_date"] = "End date must be on or after the start date."
        with self.session_scope() as session:
            if session.get(Employee, data["employee_id"]) is None:
                errors["employee_id"] = "The selected employee is invalid."
            if errors:
                raise ValidationError(errors)
            leave = LeaveRequest(**data, start_date=start, end_date=end,
                                 days_requested=stats.count_weekdays(start, end), status="pending")
            session.add(leave)
            self._record(session, "created", leave, actor, {"attributes": {
                "leave_type": data["leave_type"], "start_date": start.isoformat(), "end_date": end.isoformat()}})
            return leave.id

    def review_leave_request(self, leave_id, status, actor=None):
        if status not in ("approved", "denied"):
            raise ValidationError({"status": "Status must be approved or denied."})
        with self.session_scope() as session:
            leave = self._get(session, LeaveRequest, leave_id)
            if leave.status != "pending":
                raise ValidationError({"status": "Only pending requests can be reviewed."})
            old, new = _apply_changes(leave, {"status": status, "reviewed_by": actor})
            leave.reviewed_at = datetime.now()
            self._record_update(session, leave, actor, old, new)

    def cancel_leave_request(self, leave_id, actor=None):
        with self.session_scope() as session:
            leave = self._get(session, LeaveRequest, leave_id)
            if leave.status not in ("pending", "approved"):
                raise ValidationError({"status": "This request can no longer be cancelled."})
            old, new = _apply_changes(leave, {"status": "cancelled"})
            self._record_update(session, leave, actor, old, new)

    def list_leave_requests(self, status=None, employee_id=None, limit=config.PAGE_SIZE, offset=0):
        with self.session_scope() as session:
            query = session.query(LeaveRequest)
            if status and status != "all":
                query = query.filter(LeaveRequest.status == status)
            if employee_id:
                query = query.filter(LeaveRequest.employee_id == employee_id)
            total_count = query.count()
            query = query.order_by(LeaveRequest.start_date.desc(), LeaveRequest.id.desc())
            if limit:
                query = query.limit(limit).offset(offset)
            return [l.to_dict() for l in query.all()], total_count

    def leave_calendar(self, month=None, campaign_id=None, leave_type=None, first_day=None, last_day=None):
        """Approved leaves overlapping the month (or an explicit [first_day, last_day] window)."""
        month = stats.parse_month(month)
        first_day = first_day or stats.month_start(month)
        last_day = last_day or stats.month_end(month)
        with self.session_scope() as session:
            query = session.query(LeaveRequest).join(Employee, LeaveRequest.employee_id == Employee.id).filter(
                LeaveRequest.status == "approved",
                LeaveRequest.start_date <= last_day,
                LeaveRequest.end_date >= first_day,
            )
            if campaign_id:
                query = query.filter(Employee.campaign_id == campaign_id)
            if leave_type and leave_type != "All":
                query = query.filter(LeaveRequest.leave_type == leave_type)
            return [l.to_dict() for l in query.order_by(LeaveRequest.start_date, LeaveRequest.id).all()]

    # --- DASHBOARD ---
    def dashboard_stats(self, today=None):
        today = today or date.today()
        return {
            "stations": self.station_stats(today),
            "concerns": self.concern_stats(),
            "concern_trends": self.concern_trends(today),
            "presence": self.presence_today(today),
            "leave_calendar": self.leave_calendar(today),
            "points": {
                **stats.points_summary(self.list_points(state="active", limit=None)[0]),
                "high_risk_employees": self.high_risk_employees(),
                "trend": self.points_trend(today),
            },
            "stock": self.stock_overview(),
        }
