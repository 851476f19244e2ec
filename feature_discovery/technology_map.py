"""Static package-name -> technology lookup for the catalog summary."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence


@dataclass(frozen=True)
class TechnologyMapping:
    pattern: str
    name: str
    category: str


TECHNOLOGIES: List[TechnologyMapping] = [
    # Core
    TechnologyMapping("react", "React", "react"),
    TechnologyMapping("react-dom", "React DOM", "react"),
    TechnologyMapping("next", "Next.js", "react"),
    TechnologyMapping("remix", "Remix", "react"),
    TechnologyMapping("gatsby", "Gatsby", "react"),
    # State
    TechnologyMapping("@tanstack/react-query", "TanStack Query", "state"),
    TechnologyMapping("react-query", "React Query", "state"),
    TechnologyMapping("redux", "Redux", "state"),
    TechnologyMapping("@reduxjs/toolkit", "Redux Toolkit", "state"),
    TechnologyMapping("zustand", "Zustand", "state"),
    TechnologyMapping("jotai", "Jotai", "state"),
    TechnologyMapping("recoil", "Recoil", "state"),
    TechnologyMapping("mobx", "MobX", "state"),
    TechnologyMapping("xstate", "XState", "state"),
    # Routing
    TechnologyMapping("react-router", "React Router", "routing"),
    TechnologyMapping("react-router-dom", "React Router DOM", "routing"),
    TechnologyMapping("wouter", "Wouter", "routing"),
    TechnologyMapping("@tanstack/react-router", "TanStack Router", "routing"),
    # Styling
    TechnologyMapping("tailwindcss", "Tailwind CSS", "styling"),
    TechnologyMapping("styled-components", "Styled Components", "styling"),
    TechnologyMapping("@emotion/react", "Emotion", "styling"),
    TechnologyMapping("@emotion/styled", "Emotion", "styling"),
    TechnologyMapping("sass", "Sass", "styling"),
    TechnologyMapping("less", "Less", "styling"),
    TechnologyMapping("@mui/material", "Material-UI", "styling"),
    TechnologyMapping("@chakra-ui/react", "Chakra UI", "styling"),
    TechnologyMapping("@radix-ui", "Radix UI", "styling"),
    TechnologyMapping("@headlessui/react", "Headless UI", "styling"),
    TechnologyMapping("antd", "Ant Design", "styling"),
    TechnologyMapping("next-themes", "Next Themes", "styling"),
    # Server
    TechnologyMapping("express", "Express.js", "server"),
    TechnologyMapping("fastify", "Fastify", "server"),
    TechnologyMapping("koa", "Koa", "server"),
    TechnologyMapping("hono", "Hono", "server"),
    # Database
    TechnologyMapping("drizzle-orm", "Drizzle ORM", "database"),
    TechnologyMapping("prisma", "Prisma", "database"),
    TechnologyMapping("@prisma/client", "Prisma", "database"),
    TechnologyMapping("typeorm", "TypeORM", "database"),
    TechnologyMapping("mongoose", "Mongoose", "database"),
    TechnologyMapping("sequelize", "Sequelize", "database"),
    TechnologyMapping("@neondatabase/serverless", "Neon Database", "database"),
    TechnologyMapping("@planetscale/database", "PlanetScale", "database"),
    TechnologyMapping("@supabase/supabase-js", "Supabase", "database"),
    # Testing
    TechnologyMapping("vitest", "Vitest", "testing"),
    TechnologyMapping("jest", "Jest", "testing"),
    TechnologyMapping("@testing-library/react", "React Testing Library", "testing"),
    TechnologyMapping("cypress", "Cypress", "testing"),
    TechnologyMapping("playwright", "Playwright", "testing"),
    # Build
    TechnologyMapping("vite", "Vite", "build"),
    TechnologyMapping("webpack", "Webpack", "build"),
    TechnologyMapping("esbuild", "esbuild", "build"),
    TechnologyMapping("turbopack", "Turbopack", "build"),
    TechnologyMapping("parcel", "Parcel", "build"),
    # Forms / validation / animation / misc
    TechnologyMapping("react-hook-form", "React Hook Form", "other"),
    TechnologyMapping("formik", "Formik", "other"),
    TechnologyMapping("@tanstack/react-form", "TanStack Form", "other"),
    TechnologyMapping("zod", "Zod", "other"),
    TechnologyMapping("yup", "Yup", "other"),
    TechnologyMapping("joi", "Joi", "other"),
    TechnologyMapping("framer-motion", "Framer Motion", "other"),
    TechnologyMapping("react-spring", "React Spring", "other"),
    TechnologyMapping("typescript", "TypeScript", "other"),
    TechnologyMapping("axios", "Axios", "other"),
    TechnologyMapping("date-fns", "date-fns", "other"),
    TechnologyMapping("dayjs", "Day.js", "other"),
    TechnologyMapping("lodash", "Lodash", "other"),
    TechnologyMapping("ramda", "Ramda", "other"),
]


def match_technology(
    package: str,
    mappings: Sequence[TechnologyMapping] = TECHNOLOGIES,
) -> Optional[TechnologyMapping]:
    """Exact package name first, else the longest pattern that prefixes it.

    A prefix only counts at a ``/`` or ``-`` boundary, so ``@radix-ui/react-dialog``
    maps to Radix UI while ``reactive-x`` maps to nothing.
    """
    for mapping in mappings:
        if mapping.pattern == package:
            return mapping

    best: Optional[TechnologyMapping] = None
    for mapping in mappings:
        pattern = mapping.pattern
        if package.startswith(pattern) and package[len(pattern):len(pattern) + 1] in ("/", "-"):
            if best is None or len(pattern) > len(best.pattern):
                best = mapping
    return best


def detect_technologies(
    packages: Iterable[str],
    custom_mappings: Sequence[TechnologyMapping] = (),
) -> List[str]:
    """Sorted, de-duplicated technology names for *packages*."""
    return detect_technologies_from(packages, list(TECHNOLOGIES) + list(custom_mappings))


def technologies_by_category(packages: Iterable[str], category: str) -> List[str]:
    mappings = [m for m in TECHNOLOGIES if m.category == category]
    return detect_technologies_from(packages, mappings)


def detect_technologies_from(
    packages: Iterable[str],
    mappings: Sequence[TechnologyMapping],
) -> List[str]:
    found = set()
    for package in packages:
        mapping = match_technology(package, mappings)
        if mapping is not None:
            found.add(mapping.name)
    return sorted(found)
