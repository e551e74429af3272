"""initial registrar schema

Revision ID: 3c1d7a52e0b4
Revises:
Create Date: 2025-11-01 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '3c1d7a52e0b4'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVE_ENROLLMENT = sa.text("status IN ('ENROLLED','COMPLETED')")


def _id():
    return sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False)


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    ]


def upgrade():
    op.create_table(
        'users',
        _id(),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint("role IN ('SUPER_ADMIN','ADMIN','FACULTY','TA','STUDENT')", name='ck_user_role'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'colleges',
        _id(),
        sa.Column('code', sa.String(length=16), nullable=False),
        sa.Column('name_en', sa.String(length=128), nullable=False),
        sa.Column('name_ar', sa.String(length=128), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code'),
    )

    op.create_table(
        'departments',
        _id(),
        sa.Column('college_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('code', sa.String(length=16), nullable=False),
        sa.Column('name_en', sa.String(length=128), nullable=False),
        sa.Column('name_ar', sa.String(length=128), nullable=True),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('min_gpa', sa.Float(), nullable=False),
        sa.Column('selection_year', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code'),
        sa.ForeignKeyConstraint(['college_id'], ['colleges.id'], ondelete='CASCADE'),
        sa.CheckConstraint('capacity >= 0', name='ck_department_capacity'),
        sa.CheckConstraint('min_gpa >= 0 AND min_gpa <= 4', name='ck_department_min_gpa'),
    )
    op.create_index('ix_departments_college_id', 'departments', ['college_id'])

    op.create_table(
        'courses',
        _id(),
        sa.Column('code', sa.String(length=16), nullable=False),
        sa.Column('name_en', sa.String(length=128), nullable=False),
        sa.Column('name_ar', sa.String(length=128), nullable=True),
        sa.Column('credits', sa.Integer(), nullable=False),
        sa.Column('category', sa.String(length=16), nullable=False),
        sa.Column('department_id', postgresql.UUID(as_uuid=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['department_id'], ['departments.id'], ondelete='SET NULL'),
        sa.CheckConstraint('credits > 0', name='ck_course_credits'),
        sa.CheckConstraint("category IN ('CORE','ELECTIVE','GENERAL')", name='ck_course_category'),
    )
    op.create_index('ix_courses_code', 'courses', ['code'], unique=True)
    op.create_index('ix_courses_department_id', 'courses', ['department_id'])

    op.create_table(
        'prerequisites',
        _id(),
        sa.Column('course_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('prerequisite_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('type', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['course_id'], ['courses.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['prerequisite_id'], ['courses.id'], ondelete='CASCADE'),
        sa.CheckConstraint('course_id <> prerequisite_id', name='ck_prerequisite_not_self'),
        sa.CheckConstraint("type IN ('PREREQUISITE','COREQUISITE')", name='ck_prerequisite_type'),
    )
    op.create_index('ix_prerequisites_course_id', 'prerequisites', ['course_id'])
    op.create_index('ix_prerequisites_prerequisite_id', 'prerequisites', ['prerequisite_id'])
    op.create_index('uq_prerequisite_edge', 'prerequisites', ['course_id', 'prerequisite_id'], unique=True)

    op.create_table(
        'curricula',
        _id(),
        sa.Column('department_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('total_credits', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['department_id'], ['departments.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_curricula_department_id', 'curricula', ['department_id'])

    op.create_table(
        'curriculum_courses',
        _id(),
        sa.Column('curriculum_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('course_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('semester', sa.Integer(), nullable=False),
        sa.Column('is_required', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['curriculum_id'], ['curricula.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['course_id'], ['courses.id'], ondelete='CASCADE'),
        sa.CheckConstraint('year >= 1', name='ck_curriculum_course_year'),
        sa.CheckConstraint('semester IN (1, 2)', name='ck_curriculum_course_semester'),
    )
    op.create_index('ix_curriculum_courses_curriculum_id', 'curriculum_courses', ['curriculum_id'])
    op.create_index('uq_curriculum_course', 'curriculum_courses', ['curriculum_id', 'course_id'], unique=True)

    op.create_table(
        'batches',
        _id(),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('department_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('curriculum_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('min_credits', sa.Integer(), nullable=False),
        sa.Column('max_credits', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['department_id'], ['departments.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['curriculum_id'], ['curricula.id'], ondelete='SET NULL'),
        sa.CheckConstraint('min_credits >= 0 AND max_credits >= min_credits', name='ck_batch_credit_limits'),
    )
    op.create_index('ix_batches_department_id', 'batches', ['department_id'])
    op.create_index('uq_batch_name_year', 'batches', ['name', 'year'], unique=True)

    op.create_table(
        'academic_terms',
        _id(),
        sa.Column('batch_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('type', sa.String(length=16), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('registration_start', sa.DateTime(), nullable=False),
        sa.Column('registration_end', sa.DateTime(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['batch_id'], ['batches.id'], ondelete='CASCADE'),
        sa.CheckConstraint("status IN ('ACTIVE','INACTIVE','COMPLETED')", name='ck_academic_term_status'),
        sa.CheckConstraint("type IN ('FALL','SPRING','SUMMER')", name='ck_academic_term_type'),
        sa.CheckConstraint('start_date <= end_date', name='ck_academic_term_dates'),
        sa.CheckConstraint('registration_start <= registration_end', name='ck_academic_term_registration'),
    )
    op.create_index('ix_academic_terms_batch_id', 'academic_terms', ['batch_id'])

    op.create_table(
        'students',
        _id(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('student_code', sa.String(length=32), nullable=False),
        sa.Column('name_en', sa.String(length=128), nullable=False),
        sa.Column('name_ar', sa.String(length=128), nullable=True),
        sa.Column('batch_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('department_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id'),
        sa.UniqueConstraint('student_code'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['batch_id'], ['batches.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['department_id'], ['departments.id'], ondelete='SET NULL'),
        sa.CheckConstraint("status IN ('ACTIVE','SUSPENDED','GRADUATED','WITHDRAWN')", name='ck_student_status'),
    )
    op.create_index('ix_students_batch_id', 'students', ['batch_id'])
    op.create_index('ix_students_department_id', 'students', ['department_id'])

    op.create_table(
        'faculty',
        _id(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('department_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('name_en', sa.String(length=128), nullable=False),
        sa.Column('name_ar', sa.String(length=128), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['department_id'], ['departments.id'], ondelete='SET NULL'),
    )

    op.create_table(
        'sections',
        _id(),
        sa.Column('course_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('term_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('faculty_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('code', sa.String(length=16), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['course_id'], ['courses.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['term_id'], ['academic_terms.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['faculty_id'], ['faculty.id'], ondelete='SET NULL'),
        sa.CheckConstraint('capacity > 0', name='ck_section_capacity'),
    )
    op.create_index('ix_sections_course_id', 'sections', ['course_id'])
    op.create_index('ix_sections_term_id', 'sections', ['term_id'])
    op.create_index('ix_sections_faculty_id', 'sections', ['faculty_id'])
    op.create_index('uq_section_code_per_course_term', 'sections', ['course_id', 'term_id', 'code'], unique=True)

    op.create_table(
        'schedules',
        _id(),
        sa.Column('section_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('day', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.String(length=5), nullable=False),
        sa.Column('end_time', sa.String(length=5), nullable=False),
        sa.Column('room', sa.String(length=32), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['section_id'], ['sections.id'], ondelete='CASCADE'),
        sa.CheckConstraint('day >= 0 AND day <= 6', name='ck_schedule_day'),
        sa.CheckConstraint('start_time < end_time', name='ck_schedule_times'),
    )
    op.create_index('ix_schedules_section_id', 'schedules', ['section_id'])

    op.create_table(
        'enrollments',
        _id(),
        sa.Column('student_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('section_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('enrolled_at', sa.DateTime(), nullable=False),
        sa.Column('dropped_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['section_id'], ['sections.id'], ondelete='CASCADE'),
        sa.CheckConstraint("status IN ('ENROLLED','DROPPED','WITHDRAWN','COMPLETED')", name='ck_enrollment_status'),
    )
    op.create_index('ix_enrollments_student_id', 'enrollments', ['student_id'])
    op.create_index('ix_enrollments_section_id', 'enrollments', ['section_id'])
    op.create_index('ix_enrollments_section_status', 'enrollments', ['section_id', 'status'])
    # One ENROLLED/COMPLETED enrollment per student per section
    op.create_index(
        'uq_active_enrollment_student_section',
        'enrollments',
        ['student_id', 'section_id'],
        unique=True,
        postgresql_where=ACTIVE_ENROLLMENT,
        sqlite_where=ACTIVE_ENROLLMENT,
    )

    op.create_table(
        'enrollment_status_events',
        _id(),
        sa.Column('enrollment_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('prev_status', sa.String(length=16), nullable=True),
        sa.Column('new_status', sa.String(length=16), nullable=False),
        sa.Column('reason', sa.String(length=256), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['enrollment_id'], ['enrollments.id'], ondelete='CASCADE'),
        sa.CheckConstraint(
            "new_status IN ('ENROLLED','DROPPED','WITHDRAWN','COMPLETED')",
            name='ck_enrollment_event_status'
        ),
    )
    op.create_index('ix_enrollment_status_events_enrollment_id', 'enrollment_status_events', ['enrollment_id'])

    op.create_table(
        'grade_components',
        _id(),
        sa.Column('section_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('weight', sa.Float(), nullable=False),
        sa.Column('max_score', sa.Float(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['section_id'], ['sections.id'], ondelete='CASCADE'),
        sa.CheckConstraint('weight >= 0 AND weight <= 100', name='ck_grade_component_weight'),
        sa.CheckConstraint('max_score > 0', name='ck_grade_component_max_score'),
    )
    op.create_index('ix_grade_components_section_id', 'grade_components', ['section_id'])

    op.create_table(
        'grades',
        _id(),
        sa.Column('enrollment_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('component_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('score', sa.Float(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['enrollment_id'], ['enrollments.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['component_id'], ['grade_components.id'], ondelete='CASCADE'),
        sa.CheckConstraint('score >= 0', name='ck_grade_score'),
    )
    op.create_index('ix_grades_enrollment_id', 'grades', ['enrollment_id'])
    op.create_index('ix_grades_component_id', 'grades', ['component_id'])
    op.create_index('uq_grade_enrollment_component', 'grades', ['enrollment_id', 'component_id'], unique=True)

    op.create_table(
        'final_grades',
        _id(),
        sa.Column('enrollment_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('letter_grade', sa.String(length=4), nullable=False),
        sa.Column('grade_point', sa.Float(), nullable=False),
        sa.Column('total_score', sa.Float(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('published_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('enrollment_id'),
        sa.ForeignKeyConstraint(['enrollment_id'], ['enrollments.id'], ondelete='CASCADE'),
        sa.CheckConstraint("status IN ('DRAFT','PUBLISHED')", name='ck_final_grade_status'),
    )

    op.create_table(
        'grade_scales',
        _id(),
        sa.Column('letter_grade', sa.String(length=4), nullable=False),
        sa.Column('min_percentage', sa.Float(), nullable=False),
        sa.Column('gpa_points', sa.Float(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('letter_grade'),
        sa.CheckConstraint('min_percentage >= 0 AND min_percentage <= 100', name='ck_grade_scale_min'),
        sa.CheckConstraint('gpa_points >= 0 AND gpa_points <= 4', name='ck_grade_scale_points'),
    )

    op.create_table(
        'term_gpas',
        _id(),
        sa.Column('student_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('term_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('gpa', sa.Float(), nullable=False),
        sa.Column('credits_earned', sa.Integer(), nullable=False),
        sa.Column('credits_attempted', sa.Integer(), nullable=False),
        sa.Column('calculated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['term_id'], ['academic_terms.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_term_gpas_student_id', 'term_gpas', ['student_id'])
    op.create_index('ix_term_gpas_term_id', 'term_gpas', ['term_id'])
    op.create_index('uq_term_gpa_student_term', 'term_gpas', ['student_id', 'term_id'], unique=True)

    op.create_table(
        'cumulative_gpas',
        _id(),
        sa.Column('student_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('cgpa', sa.Float(), nullable=False),
        sa.Column('total_credits', sa.Integer(), nullable=False),
        sa.Column('academic_standing', sa.String(length=24), nullable=False),
        sa.Column('calculated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('student_id'),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.CheckConstraint(
            "academic_standing IN ('GOOD_STANDING','ACADEMIC_WARNING','ACADEMIC_PROBATION')",
            name='ck_cumulative_gpa_standing'
        ),
    )

    op.create_table(
        'attendance',
        _id(),
        sa.Column('enrollment_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('session_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('excuse', sa.String(length=256), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['enrollment_id'], ['enrollments.id'], ondelete='CASCADE'),
        sa.CheckConstraint("status IN ('PRESENT','ABSENT','EXCUSED')", name='ck_attendance_status'),
    )
    op.create_index('ix_attendance_enrollment_id', 'attendance', ['enrollment_id'])
    op.create_index('uq_attendance_enrollment_session', 'attendance', ['enrollment_id', 'session_date'], unique=True)

    op.create_table(
        'department_applications',
        _id(),
        sa.Column('student_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('department_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('student_gpa', sa.Float(), nullable=False),
        sa.Column('statement', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('rejection_reason', sa.String(length=512), nullable=True),
        sa.Column('submitted_at', sa.DateTime(), nullable=False),
        sa.Column('processed_at', sa.DateTime(), nullable=True),
        sa.Column('processed_by', postgresql.UUID(as_uuid=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('student_id'),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['department_id'], ['departments.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['processed_by'], ['users.id'], ondelete='SET NULL'),
        sa.CheckConstraint(
            "status IN ('PENDING','APPROVED','REJECTED','WITHDRAWN')",
            name='ck_department_application_status'
        ),
    )
    op.create_index('ix_department_applications_department_id', 'department_applications', ['department_id'])

    op.create_table(
        'system_settings',
        sa.Column('key', sa.String(length=64), nullable=False),
        sa.Column('value', sa.JSON(), nullable=False),
        sa.Column('description', sa.String(length=256), nullable=True),
        sa.Column('updated_by', sa.String(length=64), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('key'),
    )


def downgrade():
    for table in (
        'system_settings',
        'department_applications',
        'attendance',
        'cumulative_gpas',
        'term_gpas',
        'grade_scales',
        'final_grades',
        'grades',
        'grade_components',
        'enrollment_status_events',
        'enrollments',
        'schedules',
        'sections',
        'faculty',
        'students',
        'academic_terms',
        'batches',
        'curriculum_courses',
        'curricula',
        'prerequisites',
        'courses',
        'departments',
        'colleges',
        'users',
    ):
        op.drop_table(table)
